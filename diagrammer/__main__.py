"""
Diagrammer — entry point.

Usage:
    python -m diagrammer serve                # start web server on :8000
    python -m diagrammer serve --port 3000
    python -m diagrammer validate scene.json  # report validation issues
"""

import logging
import sys


def _validate(path: str) -> int:
    from diagrammer.scene import SceneValidationError, read_scene_document, validate_scene

    try:
        with open(path, "rb") as f:
            data = read_scene_document(f)
    except OSError as exc:
        print(f"Cannot read {path}: {exc}")
        return 2
    except SceneValidationError as exc:
        for issue in exc.errors:
            print(f"error: {issue}")
        return 1

    result = validate_scene(data)
    for issue in result.errors:
        print(f"error [{issue.tier}]: {issue}")
    for issue in result.warnings:
        print(f"warning: {issue}")
    if result.valid:
        scene = result.scene
        print(f"OK: {len(scene.nodes)} nodes, {len(scene.connectors)} connectors, "
              f"{len(scene.texts)} texts")
        return 0
    return 1


def main():
    args = sys.argv[1:]
    cmd = args[0] if args else "serve"

    if cmd == "serve":
        port = 8000
        host = "127.0.0.1"
        for i, a in enumerate(args):
            if a == "--port" and i + 1 < len(args):
                port = int(args[i + 1])
            elif a == "--host" and i + 1 < len(args):
                host = args[i + 1]

        logging.basicConfig(level=logging.INFO,
                            format="%(asctime)s %(levelname)s %(name)s: %(message)s")
        from diagrammer.web.server import main as serve
        serve(host=host, port=port)
    elif cmd == "validate" and len(args) == 2:
        sys.exit(_validate(args[1]))
    else:
        print(f"Unknown command: {' '.join(args)}")
        print("Usage: python -m diagrammer serve [--port PORT] [--host HOST]")
        print("       python -m diagrammer validate FILE")
        sys.exit(1)


if __name__ == "__main__":
    main()
