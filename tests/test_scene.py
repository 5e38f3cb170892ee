"""Tests for the scene schema and validator.

Validates:
  - The network fixture validates cleanly
  - Structural problems (types, duplicate ids, custom ports without an
    offset) block the Scene; referential ones still yield a Scene
  - Warnings for icon nodes without iconRef and unplaced nodes
  - camelCase on the wire, snake_case in Python
  - Scene helpers copy rather than share records
"""

from __future__ import annotations

import copy
import json
import unittest

from diagrammer.config import DEFAULTS
from diagrammer.scene import (
    REFERENTIAL, STRUCTURAL,
    Connector, Endpoint, Node, Scene, SceneValidationError,
    clone_scene, empty_scene, generate_default_ports, generate_id, merge_scenes,
    parse_scene, read_scene_document,
    scene_to_dict, scene_to_json, validate_scene,
)
from tests.scene_fixture import make_network_scene


def _codes(issues) -> list[str]:
    return [i.code for i in issues]


class TestValidateScene(unittest.TestCase):

    def setUp(self):
        self.doc = make_network_scene()

    def test_fixture_is_valid(self):
        result = validate_scene(self.doc)
        self.assertTrue(result.valid, result.errors)
        self.assertEqual(result.warnings, [])
        self.assertIsInstance(result.scene, Scene)
        self.assertEqual(len(result.scene.nodes), 3)

    def test_non_object_rejected(self):
        result = validate_scene([1, 2, 3])
        self.assertFalse(result.valid)
        self.assertEqual(_codes(result.errors), ["invalid_type"])
        self.assertIsNone(result.scene)

    def test_missing_required_field(self):
        del self.doc["nodes"][0]["id"]
        result = validate_scene(self.doc)
        self.assertFalse(result.valid)
        self.assertIn("nodes.0.id", [e.path for e in result.errors])
        self.assertTrue(all(e.tier == STRUCTURAL for e in result.errors))
        self.assertIsNone(result.scene)

    def test_port_offset_out_of_range(self):
        self.doc["nodes"][1]["ports"][2]["offset"]["x"] = 1.5
        result = validate_scene(self.doc)
        self.assertFalse(result.valid)
        self.assertIsNone(result.scene)

    def test_duplicate_ids_across_kinds(self):
        self.doc["texts"][0]["id"] = "gateway"
        result = validate_scene(self.doc)
        self.assertEqual(_codes(result.errors), ["duplicate_ids"])
        self.assertIn("text:gateway", result.errors[0].message)
        self.assertIsNone(result.scene)

    def test_duplicate_port_id(self):
        self.doc["nodes"][1]["ports"][1]["id"] = "in"
        result = validate_scene(self.doc)
        self.assertIn("duplicate_port_id", _codes(result.errors))

    def test_custom_port_requires_offset(self):
        del self.doc["nodes"][1]["ports"][2]["offset"]
        result = validate_scene(self.doc)
        self.assertEqual(_codes(result.errors), ["missing_offset"])
        self.assertEqual(result.errors[0].tier, STRUCTURAL)
        self.assertIsNone(result.scene)

    def test_dangling_node_reference_is_referential(self):
        self.doc["connectors"][1]["to"]["nodeId"] = "ghost"
        result = validate_scene(self.doc)
        self.assertFalse(result.valid)
        self.assertEqual(_codes(result.referential_errors), ["invalid_reference"])
        self.assertEqual(result.structural_errors, [])
        self.assertEqual(result.errors[0].path, "connectors.c2.to.nodeId")
        # Scene is still built so import can degrade
        self.assertIsNotNone(result.scene)

    def test_unknown_port_on_declared_ports(self):
        self.doc["connectors"][0]["to"]["portId"] = "nope"
        result = validate_scene(self.doc)
        self.assertEqual(_codes(result.errors), ["invalid_port_reference"])
        self.assertEqual(result.errors[0].tier, REFERENTIAL)

    def test_port_on_node_without_declared_ports_not_checked(self):
        self.doc["connectors"][1]["from"]["portId"] = "gateway-e"
        result = validate_scene(self.doc)
        self.assertTrue(result.valid)

    def test_icon_without_ref_warns(self):
        del self.doc["nodes"][2]["iconRef"]
        result = validate_scene(self.doc)
        self.assertTrue(result.valid)
        self.assertEqual(_codes(result.warnings), ["missing_icon_ref"])

    def test_unpositioned_without_layout_warns(self):
        del self.doc["nodes"][0]["x"]
        result = validate_scene(self.doc)
        self.assertTrue(result.valid)
        self.assertEqual(_codes(result.warnings), ["missing_position"])

        self.doc["layout"] = {"type": "grid"}
        self.assertEqual(validate_scene(self.doc).warnings, [])

    def test_unknown_layout_type(self):
        self.doc["layout"] = {"type": "spiral"}
        result = validate_scene(self.doc)
        self.assertFalse(result.valid)

    def test_accepts_scene_instance(self):
        scene = validate_scene(self.doc).scene
        self.assertTrue(validate_scene(scene).valid)


class TestParsing(unittest.TestCase):

    def test_parse_json_text(self):
        scene = parse_scene(json.dumps(make_network_scene()))
        self.assertEqual([n.id for n in scene.nodes], ["gateway", "server", "db"])

    def test_parse_bytes(self):
        scene = parse_scene(json.dumps(make_network_scene()).encode("utf-8"))
        self.assertEqual(len(scene.connectors), 2)

    def test_invalid_json(self):
        with self.assertRaises(SceneValidationError) as ctx:
            read_scene_document("{not json")
        self.assertEqual(ctx.exception.errors[0].code, "invalid_json")

    def test_json_array_rejected(self):
        with self.assertRaises(SceneValidationError) as ctx:
            read_scene_document("[]")
        self.assertEqual(ctx.exception.errors[0].code, "invalid_type")

    def test_parse_scene_raises_on_referential(self):
        doc = make_network_scene()
        doc["connectors"][0]["from"]["nodeId"] = "ghost"
        with self.assertRaises(SceneValidationError) as ctx:
            parse_scene(doc)
        self.assertIn("ghost", str(ctx.exception))


class TestModels(unittest.TestCase):

    def test_defaults(self):
        node = Node(id="n1")
        self.assertEqual((node.w, node.h), (80.0, 80.0))
        self.assertEqual(node.scale, 1.0)
        self.assertFalse(node.positioned)

    def test_snake_and_camel_names(self):
        a = Node.model_validate({"id": "a", "shapeType": "ellipse", "iconRef": "x"})
        b = Node(id="a", shape_type="ellipse", icon_ref="x")
        self.assertEqual(a, b)

    def test_connector_from_alias(self):
        conn = Connector(id="c", from_=Endpoint(node_id="a"), to=Endpoint(node_id="b", port_id="p"))
        dumped = conn.model_dump(by_alias=True, exclude_none=True)
        self.assertEqual(dumped["from"], {"nodeId": "a"})
        self.assertEqual(dumped["to"], {"nodeId": "b", "portId": "p"})
        self.assertEqual(conn.node_ids(), ("a", "b"))

    def test_scene_to_dict_camel_case(self):
        scene = parse_scene(make_network_scene())
        data = scene_to_dict(scene)
        self.assertIn("canvasConfig", data)
        self.assertEqual(data["nodes"][1]["ports"][0]["positionName"], "w")
        self.assertEqual(data["connectors"][0]["routingType"], "orthogonal")
        self.assertNotIn("layout", data)

    def test_serialization_reparses_equal(self):
        scene = parse_scene(make_network_scene())
        again = parse_scene(scene_to_json(scene, pretty=False))
        self.assertEqual(scene, again)

    def test_unknown_keys_ignored(self):
        doc = copy.deepcopy(make_network_scene())
        doc["nodes"][0]["legacyField"] = 1
        self.assertTrue(validate_scene(doc).valid)


class TestFactories(unittest.TestCase):

    def test_generate_id(self):
        a, b = generate_id("node"), generate_id("node")
        self.assertTrue(a.startswith("node_"))
        self.assertNotEqual(a, b)

    def test_default_ports(self):
        ports = generate_default_ports("n1")
        self.assertEqual([p.id for p in ports], ["n1-n", "n1-e", "n1-s", "n1-w", "n1-center"])
        self.assertEqual(ports[4].position_name, "center")

    def test_empty_scene(self):
        scene = empty_scene()
        self.assertEqual((scene.canvas_config.width, scene.canvas_config.height),
                         (DEFAULTS.canvas_width, DEFAULTS.canvas_height))
        self.assertEqual(scene.nodes, [])

        scene = empty_scene(width=640, height=480, background="#000000")
        self.assertEqual(scene.canvas_config.width, 640)
        self.assertEqual(scene.canvas_config.background, "#000000")

    def test_clone_scene(self):
        scene = parse_scene(make_network_scene())
        clone = clone_scene(scene)
        self.assertEqual(clone, scene)
        clone.nodes[0].label.text = "changed"
        clone.nodes[1].data["rack"] = 0
        self.assertEqual(scene.nodes[0].label.text, "Gateway")
        self.assertEqual(scene.nodes[1].data, {"rack": 4})


class TestMergeScenes(unittest.TestCase):

    def setUp(self):
        self.base = parse_scene(make_network_scene())
        self.overlay = parse_scene({
            "nodes": [{"id": "o1", "x": 10, "y": 20}, {"id": "o2"}],
            "connectors": [{"id": "oc", "from": {"nodeId": "o1"}, "to": {"nodeId": "o2"}}],
            "texts": [{"id": "ot", "x": 1, "y": 2, "content": "overlay"}],
        })

    def test_offsets_applied(self):
        merged = merge_scenes(self.base, self.overlay, offset_x=100, offset_y=50)
        self.assertEqual([n.id for n in merged.nodes], ["gateway", "server", "db", "o1", "o2"])
        o1 = merged.nodes[3]
        self.assertEqual((o1.x, o1.y), (110, 70))
        self.assertEqual((merged.texts[1].x, merged.texts[1].y), (101, 52))
        self.assertEqual([c.id for c in merged.connectors], ["c1", "c2", "oc"])

    def test_unpositioned_stay_unpositioned(self):
        merged = merge_scenes(self.base, self.overlay, offset_x=100)
        self.assertFalse(merged.nodes[4].positioned)

    def test_inputs_untouched(self):
        before_base = scene_to_dict(self.base)
        before_overlay = scene_to_dict(self.overlay)
        merged = merge_scenes(self.base, self.overlay, offset_x=5)
        merged.nodes[0].label.text = "changed"
        merged.connectors[2].from_.node_id = "gateway"
        self.assertEqual(scene_to_dict(self.base), before_base)
        self.assertEqual(scene_to_dict(self.overlay), before_overlay)

    def test_base_settings_kept(self):
        merged = merge_scenes(self.base, self.overlay)
        self.assertEqual(merged.canvas_config.background, "#fafafa")
        self.assertIsNone(merged.layout)


if __name__ == "__main__":
    unittest.main()
