"""miniappruntime.cli

Headless entry point: validate, inspect and run mini-app documents.

    miniappruntime validate app.json
    miniappruntime info app.json
    miniappruntime run app.json --duration 3 --event onClick:btn_1
"""

from __future__ import annotations

import argparse
import asyncio
import sys
from collections import Counter
from pathlib import Path
from typing import List, Optional, Sequence, Tuple

from .catalog import get_category_info, get_node_def
from .core import InvalidAppFormatError, RuntimeConfig, configure_logging
from .document import MiniApp, components_on_page, load_app_json
from .engine import MiniAppRuntime, RuntimeCallbacks
from .integrations import HeadlessHost
from .storage import InMemoryKeyValueStore


def _load(path: str) -> MiniApp:
    text = Path(path).read_text(encoding="utf-8")
    return load_app_json(text)


def _parse_events(values: Sequence[str]) -> List[Tuple[str, str]]:
    out: List[Tuple[str, str]] = []
    for v in values or []:
        event_type, sep, target = str(v).partition(":")
        if not sep or not event_type.strip():
            raise ValueError(f"Invalid --event '{v}' (expected TYPE:TARGET)")
        out.append((event_type.strip(), target.strip()))
    return out


def _stdout_callbacks() -> RuntimeCallbacks:
    def write(line: str) -> None:
        sys.stdout.write(line + "\n")

    return RuntimeCallbacks(
        on_set_text=lambda target, text: write(f"[setText] {target} = {text}"),
        on_set_style=lambda target, prop, value: write(f"[setStyle] {target}.{prop} = {value}"),
        on_alert=lambda message: write(f"[alert] {message}"),
        on_log=lambda message: write(f"[log] {message}"),
        on_navigate_page=lambda page_id: write(f"[navigate] {page_id}"),
    )


def cmd_validate(args: argparse.Namespace) -> int:
    app = _load(args.file)
    sys.stdout.write(f"OK: {app.name} ({len(app.nodes)} nodes, {len(app.connections)} connections)\n")
    return 0


def cmd_info(args: argparse.Namespace) -> int:
    app = _load(args.file)
    lines = [
        f"Name: {app.name}",
        f"Id: {app.id}",
        f"Version: {app.version}",
        f"Display mode: {app.display_mode}",
        f"Canvas: {app.canvas.width}x{app.canvas.height}",
        f"Pages: {len(app.pages)}",
    ]
    for page in app.pages:
        lines.append(f"  - {page.id} '{page.name}': {len(components_on_page(app, page.id))} components")
    lines.append(f"UI components: {len(app.ui_components)}")
    lines.append(f"Nodes: {len(app.nodes)}")
    lines.append(f"Connections: {len(app.connections)}")

    by_category: Counter = Counter()
    unknown: Counter = Counter()
    for node in app.nodes:
        definition = get_node_def(node.type)
        if definition is None:
            unknown[node.type] += 1
            continue
        category = get_category_info(definition.category)
        by_category[category.label if category else definition.category] += 1
    for label, count in sorted(by_category.items()):
        lines.append(f"  {label}: {count}")
    for node_type, count in sorted(unknown.items()):
        lines.append(f"  (unknown) {node_type}: {count}")

    sys.stdout.write("\n".join(lines) + "\n")
    return 0


async def _run(app: MiniApp, *, duration_s: float, events: List[Tuple[str, str]]) -> MiniAppRuntime:
    rt = MiniAppRuntime(
        app,
        _stdout_callbacks(),
        host=HeadlessHost(),
        storage=InMemoryKeyValueStore(),
        config=RuntimeConfig(),
    )
    await rt.start()
    for event_type, target in events:
        await rt.handle_event(event_type, target)
    if duration_s > 0:
        await asyncio.sleep(duration_s)
    rt.stop()
    await rt.wait_idle()
    return rt


def cmd_run(args: argparse.Namespace) -> int:
    events = _parse_events(list(args.event or []))
    app = _load(args.file)
    asyncio.run(_run(app, duration_s=max(float(args.duration), 0.0), events=events))
    return 0


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(prog="miniappruntime", add_help=True)
    parser.add_argument(
        "--log-level",
        default="WARNING",
        help="Log level for the package logger (default: WARNING).",
    )
    sub = parser.add_subparsers(dest="command", required=True)

    p_validate = sub.add_parser("validate", help="Check that a file is a valid mini-app document.")
    p_validate.add_argument("file")
    p_validate.set_defaults(func=cmd_validate)

    p_info = sub.add_parser("info", help="Summarize pages, components and nodes.")
    p_info.add_argument("file")
    p_info.set_defaults(func=cmd_info)

    p_run = sub.add_parser("run", help="Run an app headless (stdout callbacks, in-memory storage).")
    p_run.add_argument("file")
    p_run.add_argument("--duration", type=float, default=0.0, help="Seconds to keep timers running (default: 0).")
    p_run.add_argument(
        "--event",
        action="append",
        default=[],
        help="Deliver an event after start, as TYPE:TARGET (e.g. onClick:btn_1). Repeatable.",
    )
    p_run.set_defaults(func=cmd_run)
    return parser


def main(argv: Optional[Sequence[str]] = None) -> int:
    parser = build_parser()
    args = parser.parse_args(list(argv) if argv is not None else None)
    configure_logging(args.log_level)

    try:
        return int(args.func(args))
    except FileNotFoundError as e:
        sys.stderr.write(f"Error: file not found: {e.filename}\n")
        return 2
    except (InvalidAppFormatError, ValueError) as e:
        sys.stderr.write(f"Error: {e}\n")
        return 1


if __name__ == "__main__":  # pragma: no cover
    raise SystemExit(main())
