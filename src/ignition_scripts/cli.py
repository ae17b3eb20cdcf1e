import argparse
import json
import sys
from dataclasses import asdict
from typing import List, Optional

from .config import settings
from .core.conflicts import build_resolution_edit, build_side_edit, apply_text_edit, parse_conflicts
from .core.editing import open_script, save_script
from .core.errors import ScriptsError
from .core.notation import convert_python_notation
from .core.path_matcher import encode_scripts_in_content, extract_and_decode_scripts, find_script_paths
from .utils.logging import configure_logging, get_logger

logger = get_logger(__name__)


def _read(path: str) -> str:
    # newline="" keeps CRLF documents intact
    with open(path, "r", encoding="utf-8", newline="") as f:
        return f.read()


def _write(text: str, output: Optional[str]) -> None:
    if output:
        with open(output, "w", encoding="utf-8", newline="") as f:
            f.write(text)
    else:
        sys.stdout.write(text)
        if not text.endswith("\n"):
            sys.stdout.write("\n")


def cmd_decode(args) -> int:
    result = extract_and_decode_scripts(_read(args.file))
    for error in result.errors:
        print(f"error: {error}", file=sys.stderr)
    _write(result.decoded_content, args.output)
    logger.info(f"Decoded {len(result.script_locations)} script(s) in {args.file}")
    return 1 if result.errors else 0


def cmd_encode(args) -> int:
    original = _read(args.file)
    try:
        json.loads(original)
    except (ValueError, RecursionError) as e:
        print(f"error: Failed to parse JSON: {e}", file=sys.stderr)
        return 1
    encoded = encode_scripts_in_content(original)
    _write(encoded, args.output)
    return 0


def cmd_locations(args) -> int:
    try:
        locations = find_script_paths(json.loads(_read(args.file)))
    except (ValueError, RecursionError) as e:
        print(f"error: Failed to parse JSON: {e}", file=sys.stderr)
        return 1
    if args.json:
        print(json.dumps([asdict(loc) for loc in locations], indent=2, ensure_ascii=False))
    else:
        for loc in locations:
            first_line = loc.decoded_value.splitlines()[0] if loc.decoded_value else ""
            print(f"{loc.path}\t{first_line}")
    return 0


def cmd_notation(args) -> int:
    result = convert_python_notation(_read(args.file))
    if not result.success:
        print(f"error: {result.error}", file=sys.stderr)
        return 1
    _write(result.json, args.output)
    return 0


def cmd_conflicts(args) -> int:
    result = parse_conflicts(_read(args.file), args.file)
    for error in result.errors:
        print(f"error: {error}", file=sys.stderr)
    if args.json:
        print(json.dumps({
            "has_conflicts": result.has_conflicts,
            "conflicts": len(result.conflicts),
            "script_conflicts": [asdict(c) for c in result.script_conflicts],
        }, indent=2, ensure_ascii=False))
        return 0
    for c in result.script_conflicts:
        print(f"{c.id}\tlines {c.start_line}-{c.end_line}\t\"{c.json_key}\"\t{c.current_branch} <> {c.incoming_branch}")
    print(f"{len(result.script_conflicts)} script conflict(s), {len(result.conflicts)} conflict(s) total")
    return 0


def cmd_resolve(args) -> int:
    text = _read(args.file)
    if args.side:
        edit = build_side_edit(text, args.conflict_id, args.side, args.file)
    else:
        # a bare script unless --wrapped says it still carries the header
        header = None if args.wrapped else ""
        edit = build_resolution_edit(text, args.conflict_id, _read(args.script_file), header, args.file)
    resolved = apply_text_edit(text, edit)
    _write(resolved, args.file if args.in_place else args.output)
    logger.info(f"Resolved {args.conflict_id} (lines {edit.start_line}-{edit.end_line})")
    return 0


def cmd_open(args) -> int:
    document = open_script(_read(args.file), args.path)
    _write(document.content, args.output)
    return 0


def cmd_save(args) -> int:
    text = _read(args.file)
    updated = save_script(text, args.path, _read(args.script_file))
    _write(updated, args.file if args.in_place else args.output)
    return 0


def cmd_serve(args) -> int:
    import uvicorn

    uvicorn.run("ignition_scripts.main:app", host=args.host, port=args.port, log_level=args.log_level.lower())
    return 0


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(prog="ignition-scripts", description="Decode, encode and merge Ignition scripts")
    parser.add_argument("--log-level", default=settings.log_level, help="Logging level (default: %(default)s)")
    sub = parser.add_subparsers(dest="command", required=True)

    p = sub.add_parser("decode", help="Decode every script field of a JSON resource")
    p.add_argument("file")
    p.add_argument("-o", "--output")
    p.set_defaults(func=cmd_decode)

    p = sub.add_parser("encode", help="Re-encode the script fields of a decoded JSON resource")
    p.add_argument("file")
    p.add_argument("-o", "--output")
    p.set_defaults(func=cmd_encode)

    p = sub.add_parser("locations", help="List script fields")
    p.add_argument("file")
    p.add_argument("--json", action="store_true")
    p.set_defaults(func=cmd_locations)

    p = sub.add_parser("notation", help="Convert Python repr output (u'x', True, None) to JSON")
    p.add_argument("file")
    p.add_argument("-o", "--output")
    p.set_defaults(func=cmd_notation)

    p = sub.add_parser("conflicts", help="List merge conflicts on script fields")
    p.add_argument("file")
    p.add_argument("--json", action="store_true")
    p.set_defaults(func=cmd_conflicts)

    p = sub.add_parser("resolve", help="Resolve one script conflict")
    p.add_argument("file")
    p.add_argument("--conflict-id", required=True)
    source = p.add_mutually_exclusive_group(required=True)
    source.add_argument("--side", choices=["current", "incoming"])
    source.add_argument("--script-file", help="File holding the merged script")
    p.add_argument("--wrapped", action="store_true", help="Script file starts with the synthetic function definition")
    target = p.add_mutually_exclusive_group()
    target.add_argument("--in-place", action="store_true")
    target.add_argument("-o", "--output")
    p.set_defaults(func=cmd_resolve)

    p = sub.add_parser("open", help="Print one script wrapped in its function definition")
    p.add_argument("file")
    p.add_argument("--path", required=True, help="Script path, e.g. root.events.dom.onClick.config.script")
    p.add_argument("-o", "--output")
    p.set_defaults(func=cmd_open)

    p = sub.add_parser("save", help="Write an edited (wrapped) script back into a JSON resource")
    p.add_argument("file")
    p.add_argument("--path", required=True)
    p.add_argument("--script-file", required=True)
    target = p.add_mutually_exclusive_group()
    target.add_argument("--in-place", action="store_true")
    target.add_argument("-o", "--output")
    p.set_defaults(func=cmd_save)

    p = sub.add_parser("serve", help="Run the HTTP API")
    p.add_argument("--host", default="127.0.0.1")
    p.add_argument("--port", type=int, default=settings.app_port)
    p.set_defaults(func=cmd_serve)
    return parser


def main(argv: Optional[List[str]] = None) -> int:
    args = build_parser().parse_args(argv)
    configure_logging(args.log_level, stream=sys.stderr)
    try:
        return args.func(args)
    except ScriptsError as e:
        print(f"error: {e.message}", file=sys.stderr)
        return 1
    except OSError as e:
        print(f"error: {e}", file=sys.stderr)
        return 1


if __name__ == "__main__":
    sys.exit(main())
