"""End-to-end tests for the import and export pipelines.

Uses the network fixture (gateway, server, db icon; two connectors;
one caption) as the primary test case.

Validates:
  - Import builds one primitive per record with icons resolved in a
    single batch
  - Export reproduces the imported document (positions within 1e-6)
  - Pinned ports survive a round trip; unpinned ends stay unpinned
  - Dangling references degrade to placeholder nodes with warnings
  - Structural errors abort without touching the tree
  - Internal failures roll the tree back
  - Exported records share nothing with the live tree
"""

from __future__ import annotations

import json
import tempfile
import unittest
from pathlib import Path
from unittest import mock

from diagrammer.assets import IconResolver, MemoryAssetBackend
from diagrammer.pipeline import export_scene, import_scene, write_scene_file
from diagrammer.render import RenderTree
from diagrammer.scene import Node, NodeLabel, parse_scene, validate_scene
from tests.scene_fixture import make_assets, make_network_scene

TOL = 1e-6


class PipelineTestCase(unittest.IsolatedAsyncioTestCase):

    async def asyncSetUp(self):
        self.backend = MemoryAssetBackend(make_assets())
        self.resolver = IconResolver(self.backend)
        self.tree = RenderTree()

    async def asyncTearDown(self):
        await self.resolver.close()

    async def _import(self, doc=None, **kwargs):
        doc = make_network_scene() if doc is None else doc
        return await import_scene(doc, self.tree, resolver=self.resolver, **kwargs)


class TestImport(PipelineTestCase):

    async def test_fixture_imports_cleanly(self):
        result = await self._import()
        self.assertTrue(result.ok, result.errors)
        self.assertEqual(result.warnings, [])
        self.assertEqual(result.stats.nodes_imported, 3)
        self.assertEqual(result.stats.connectors_imported, 2)
        self.assertEqual(result.stats.texts_imported, 1)
        self.assertEqual(result.stats.icons_fetched, 1)
        self.assertGreaterEqual(result.stats.time_ms, 0.0)
        self.assertEqual(self.tree.counts(), {"nodes": 3, "connectors": 2, "texts": 1})

    async def test_single_icon_batch(self):
        doc = make_network_scene()
        doc["nodes"].append({"id": "rt", "kind": "icon", "x": 300, "y": 300, "iconRef": "router"})
        doc["nodes"].append({"id": "db2", "kind": "icon", "x": 400, "y": 300, "iconRef": "database"})
        await self._import(doc)
        self.assertEqual(self.backend.fetch_calls, [["database", "router"]])

    async def test_canvas_configured(self):
        await self._import()
        self.assertEqual(self.tree.canvas.width, 1000)
        self.assertEqual(self.tree.target.canvas.background, "#fafafa")

    async def test_connector_ports(self):
        await self._import()
        c1 = self.tree.connector("c1")
        self.assertEqual((c1.source_port, c1.target_port), ("gateway-e", "in"))
        self.assertEqual(c1.path.vertices, [(80, 40), (200, 40)])
        # marker at the target points along +x, into the server
        self.assertAlmostEqual(c1.end_angle, 0.0)

        c2 = self.tree.connector("c2")
        self.assertEqual((c2.source_port, c2.target_port), ("gateway-s", "db-n"))
        x, y = c2.label_anchor
        self.assertAlmostEqual(x, 36)
        self.assertAlmostEqual(y, 140)

    async def test_icon_primitive(self):
        await self._import()
        db = self.tree.node("db")
        self.assertEqual(db.icon.id, "database")
        self.assertFalse(db.icon_missing)

    async def test_missing_icon_degrades(self):
        doc = make_network_scene()
        doc["nodes"][2]["iconRef"] = "nope"
        result = await self._import(doc)
        self.assertTrue(result.success)
        self.assertTrue(any("Icon not found: nope" in w for w in result.warnings))
        self.assertTrue(self.tree.node("db").icon_missing)

    async def test_no_resolver(self):
        result = await import_scene(make_network_scene(), self.tree)
        self.assertTrue(result.success)
        self.assertTrue(any("No asset resolver" in w for w in result.warnings))
        self.assertTrue(self.tree.node("db").icon_missing)

    async def test_dangling_reference_placeholder(self):
        doc = make_network_scene()
        doc["connectors"][1]["to"]["nodeId"] = "ghost"
        result = await self._import(doc)
        self.assertTrue(result.success)
        ghost = self.tree.node("ghost")
        self.assertIsNotNone(ghost)
        self.assertTrue(ghost.meta.placeholder)
        self.assertEqual(ghost.meta.data, {"placeholder": "missing-node"})
        # placed by the default grid
        self.assertEqual((ghost.geometry.x, ghost.geometry.y), (85, 85))
        self.assertTrue(any("non-existent node: ghost" in w for w in result.warnings))
        self.assertTrue(any("placeholder node ghost" in w for w in result.warnings))
        self.assertEqual(self.tree.registry.endpoints("c2").target.node_id, "ghost")

    async def test_both_ends_on_one_missing_node(self):
        doc = {
            "nodes": [{"id": "a", "x": 0, "y": 0}],
            "connectors": [{"id": "c", "from": {"nodeId": "ghost"}, "to": {"nodeId": "ghost"}}],
        }
        result = await self._import(doc)
        self.assertTrue(result.success, result.errors)
        self.assertEqual(self.tree.counts(), {"nodes": 2, "connectors": 1, "texts": 0})
        self.assertTrue(self.tree.node("ghost").meta.placeholder)
        created = [w for w in result.warnings if "placeholder node ghost" in w]
        self.assertEqual(len(created), 1)

    async def test_internal_failure_restores_tree(self):
        await self._import()
        before_counts = self.tree.counts()
        before = export_scene(self.tree, pretty=False).json
        with mock.patch.object(self.tree, "add_text", side_effect=RuntimeError("boom")):
            with self.assertLogs("diagrammer.pipeline.importer", "ERROR"):
                result = await self._import({
                    "nodes": [{"id": "solo", "x": 5, "y": 5}],
                    "texts": [{"id": "t", "x": 0, "y": 0, "content": "x"}],
                })
        self.assertFalse(result.success)
        self.assertEqual(result.errors, ["Import failed: boom"])
        self.assertEqual(self.tree.counts(), before_counts)
        self.assertIsNone(self.tree.node("solo"))
        self.assertEqual(export_scene(self.tree, pretty=False).json, before)

    async def test_progress_reported(self):
        calls = []
        result = await self._import(on_progress=lambda fraction, message: calls.append((fraction, message)))
        self.assertTrue(result.success)
        fractions = [f for f, _ in calls]
        self.assertEqual(fractions, sorted(fractions))
        self.assertEqual(fractions[0], 0.05)
        self.assertEqual(calls[-1], (1.0, "Import complete"))
        messages = [m for _, m in calls]
        self.assertIn("Creating node 3/3", messages)
        self.assertIn("Creating connector 2/2", messages)

    async def test_progress_stops_on_structural_error(self):
        calls = []
        doc = make_network_scene()
        doc["texts"][0]["id"] = "gateway"
        await self._import(doc, on_progress=lambda fraction, message: calls.append(fraction))
        self.assertEqual(calls, [0.05])

    async def test_unknown_port_falls_back(self):
        doc = make_network_scene()
        doc["connectors"][0]["to"]["portId"] = "nope"
        result = await self._import(doc)
        self.assertTrue(result.success)
        port_warnings = [w for w in result.warnings if "nope" in w]
        self.assertEqual(len(port_warnings), 1)
        self.assertFalse(self.tree.registry.endpoints("c1").target.pinned)

    async def test_structural_error_aborts(self):
        await self._import()
        before = self.tree.counts()
        doc = make_network_scene()
        doc["texts"][0]["id"] = "gateway"
        result = await self._import(doc)
        self.assertFalse(result.success)
        self.assertTrue(any("Duplicate IDs" in e for e in result.errors))
        self.assertEqual(self.tree.counts(), before)

    async def test_invalid_json(self):
        result = await self._import("{broken")
        self.assertFalse(result.success)
        self.assertTrue(result.errors[0].startswith("Invalid JSON"))

    async def test_layout_for_unpositioned_nodes(self):
        doc = {
            "layout": {"type": "hierarchical"},
            "nodes": [{"id": "a"}, {"id": "b"}],
            "connectors": [{"id": "ab", "from": {"nodeId": "a"}, "to": {"nodeId": "b"}}],
        }
        result = await self._import(doc)
        self.assertEqual(result.warnings, [])
        self.assertEqual(self.tree.node("b").geometry.y, 250)

    async def test_default_grid_warns(self):
        result = await self._import({"nodes": [{"id": "a"}]})
        self.assertTrue(any("using grid layout" in w for w in result.warnings))
        self.assertEqual(self.tree.node("a").geometry.x, 85)

    async def test_merge_skips_existing_ids(self):
        await self._import()
        doc = {"nodes": [{"id": "gateway", "x": 1, "y": 1}, {"id": "extra", "x": 500, "y": 500}]}
        result = await self._import(doc, clear=False)
        self.assertTrue(any("Skipped node gateway" in w for w in result.warnings))
        self.assertEqual(self.tree.node("gateway").geometry.x, 0)
        self.assertEqual(self.tree.counts()["nodes"], 4)


class TestExport(PipelineTestCase):

    async def test_round_trip(self):
        await self._import()
        result = export_scene(self.tree)
        self.assertTrue(result.success, result.errors)
        self.assertEqual(result.scene, parse_scene(make_network_scene()))
        self.assertEqual(result.stats.nodes_exported, 3)

    async def test_reimport_is_stable(self):
        await self._import()
        first = export_scene(self.tree, pretty=False).json

        other = RenderTree()
        await import_scene(first, other, resolver=self.resolver)
        second = export_scene(other, pretty=False).json
        self.assertEqual(first, second)

    async def test_geometry_within_tolerance(self):
        await self._import()
        self.tree.target.set_transform("server", x=200.123456789, rotation=33.3, scale=1.25)
        exported = export_scene(self.tree).scene
        server = next(n for n in exported.nodes if n.id == "server")
        self.assertLess(abs(server.x - 200.123456789), TOL)
        self.assertLess(abs(server.rotation - 33.3), TOL)
        self.assertLess(abs(server.scale - 1.25), TOL)

    async def test_pinned_ports_survive(self):
        await self._import()
        # moving the server must not change which port c1 is pinned to
        self.tree.target.set_transform("server", x=0, y=300)
        data = json.loads(export_scene(self.tree).json)
        c1 = next(c for c in data["connectors"] if c["id"] == "c1")
        self.assertEqual(c1["to"], {"nodeId": "server", "portId": "in"})
        self.assertEqual(c1["from"], {"nodeId": "gateway"})

    async def test_declared_ports_only(self):
        await self._import()
        data = json.loads(export_scene(self.tree).json)
        nodes = {n["id"]: n for n in data["nodes"]}
        self.assertEqual(nodes["gateway"].get("ports", []), [])
        self.assertEqual([p["id"] for p in nodes["server"]["ports"]], ["in", "top", "tap"])

    async def test_output_validates(self):
        await self._import()
        result = export_scene(self.tree)
        self.assertTrue(validate_scene(json.loads(result.json)).valid)

    async def test_metadata_stamp(self):
        await self._import()
        result = export_scene(self.tree, include_metadata=True)
        self.assertIsNotNone(result.scene.metadata.modified)

    async def test_exported_scene_is_detached(self):
        await self._import()
        scene = export_scene(self.tree).scene
        gateway = next(n for n in scene.nodes if n.id == "gateway")
        gateway.label.text = "mutated"
        next(n for n in scene.nodes if n.id == "server").data["rack"] = 99
        scene.canvas_config.width = 1

        again = export_scene(self.tree).scene
        self.assertEqual(next(n for n in again.nodes if n.id == "gateway").label.text, "Gateway")
        self.assertEqual(next(n for n in again.nodes if n.id == "server").data, {"rack": 4})
        self.assertEqual(self.tree.canvas.width, 1000)

    async def test_added_node_is_detached(self):
        node = Node(id="n", x=10, y=10, label=NodeLabel(text="orig"), data={"k": [1]})
        self.tree.add_node(node)
        node.label.text = "mutated"
        node.data["k"].append(2)
        prim = self.tree.node("n")
        self.assertEqual(prim.meta.label.text, "orig")
        self.assertEqual(prim.meta.data, {"k": [1]})

    async def test_empty_tree(self):
        result = export_scene(RenderTree())
        self.assertTrue(result.success)
        self.assertEqual(result.scene.nodes, [])

    async def test_write_file(self):
        await self._import()
        with tempfile.TemporaryDirectory() as tmp:
            path = Path(tmp) / "scene.json"
            result = write_scene_file(self.tree, path, pretty=True)
            self.assertTrue(result.success)
            data = json.loads(path.read_text(encoding="utf-8"))
        self.assertEqual(len(data["nodes"]), 3)

    async def test_write_file_unwritable(self):
        await self._import()
        with tempfile.TemporaryDirectory() as tmp:
            result = write_scene_file(self.tree, Path(tmp) / "missing" / "scene.json")
        self.assertFalse(result.success)
        self.assertTrue(result.errors)


if __name__ == "__main__":
    unittest.main()
