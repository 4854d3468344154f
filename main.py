#!/usr/bin/env python3
# main.py
from __future__ import annotations

import argparse
import dataclasses
import logging
import sys
from typing import Any, List, Optional, Tuple

from backends import BACKENDS
from capabilities import CAPABILITIES
from dispatch import transform
from errors import AllBackendsFailed, TransformError
from geometry import normalize_geometry
from history import ABSENT, TransformSpec
from images import ImageDescriptor, display_size, save
from settings import TransformConfig

# ---------------- type parsing for --spec ----------------
def _auto(v: str) -> Any:
    # Basic type coercion (int, float, bool, string)
    s = v.strip()
    if s.lower() in ("true", "false"):
        return s.lower() == "true"
    try:
        if "." in s or "e" in s.lower():
            return float(s)
        return int(s)
    except ValueError:
        # comma-list -> list of auto-typed items ("500,500,!" -> [500, 500, "!"])
        if "," in s:
            return [_auto(x) for x in s.split(",")]
        return s


def parse_specs(kvs: List[str]) -> List[TransformSpec]:
    # Parses ["key=value", "flag", ...] into [(key, value), (flag, ABSENT), ...]
    out: List[TransformSpec] = []
    for item in kvs:
        if not item:
            continue
        if "=" not in item:
            out.append((item.strip(), ABSENT))
            continue
        key, val = item.split("=", 1)
        out.append((key.strip(), _auto(val)))
    return out


def _viewport(s: str) -> Tuple[int, int]:
    w, sep, h = s.lower().partition("x")
    if not sep:
        raise argparse.ArgumentTypeError(f"expected WxH, got {s!r}")
    try:
        return int(w), int(h)
    except ValueError:
        raise argparse.ArgumentTypeError(f"expected WxH, got {s!r}")


# ----------------------------- CLI -----------------------------

def build_parser() -> argparse.ArgumentParser:
    p = argparse.ArgumentParser(
        description="Transform images through the first capable backend (in-process or ImageMagick)."
    )
    p.add_argument("-v", "--verbose", action="store_true", help="Log backend attempts to stderr")
    sub = p.add_subparsers(dest="cmd", required=True)

    # --- 'run' command ---
    r = sub.add_parser("run", help="Apply transforms to an image and save the result")
    r.add_argument("input", help="Image path, file:// URI or http(s) URL")
    r.add_argument("--out", required=True, help="Output image path (e.g., out.png)")
    r.add_argument(
        "--spec",
        action="append",
        default=[],
        metavar="KEY[=VALUE]",
        help="Transform spec, repeatable ('resize=50%%', 'rotate=90', 'flip', 'resize=fit')",
    )
    r.add_argument("--backend", default=None, help="Only try this backend")
    r.add_argument("--viewport", type=_viewport, default=None, help="Viewport for fit-* resizes, WxH")
    r.add_argument("--non-strict", action="store_true", help="Pass unparseable values through unchanged")
    r.add_argument("--format", default=None, help="Output format for the convert backend (png, jpg, ...)")
    r.set_defaults(func=cmd_run)

    # --- 'list' command ---
    l = sub.add_parser("list", help="List backends and the features they support")
    l.add_argument("--backend", default=None, help="Only show this backend")
    l.set_defaults(func=cmd_list)

    # --- 'parse' command ---
    g = sub.add_parser("parse", help="Print the canonical form of a geometry string")
    g.add_argument("geometry")
    g.set_defaults(func=cmd_parse)

    return p

# ---------------- Command Functions ----------------

def cmd_run(args: argparse.Namespace) -> int:
    config = TransformConfig.from_env()
    overrides = {}
    if args.viewport:
        overrides["viewport"] = args.viewport
    if args.non_strict:
        overrides["strict"] = False
    if overrides:
        config = dataclasses.replace(config, **overrides)

    image = ImageDescriptor.from_source(args.input, format_type=args.format)
    specs = parse_specs(args.spec)
    print(f"Transforming: {args.input}")

    try:
        transform(image, *specs, config=config, backend=args.backend)
    except AllBackendsFailed as e:
        print("[Error] No backend could apply the transforms:", file=sys.stderr)
        for msg in e.messages:
            print(f"  - {msg}", file=sys.stderr)
        return 1

    print(f"Backend: {image.backend_tag}")
    for key, value in image.transforms:
        print(f"  {key} = {value}")
    if image.derived_bytes is None:
        w, h = display_size(image)
        print(f"Size: {w}x{h}, rotation {image.rotation:g}")

    save(image, args.out)
    print(f"Saved image to {args.out}")
    return 0


def cmd_list(args: argparse.Namespace) -> int:
    names = [args.backend.lower()] if args.backend else BACKENDS.names()
    for name in names:
        print(f"{name}:")
        for line in CAPABILITIES.table(name).describe():
            print(f"  {line}")
        print()
    return 0


def cmd_parse(args: argparse.Namespace) -> int:
    canonical = normalize_geometry(args.geometry)
    if canonical is None:
        print(f"[Error] Not a geometry: {args.geometry!r}", file=sys.stderr)
        return 1
    print(canonical)
    return 0

# ---------------- Main Execution ----------------

def main(argv: Optional[List[str]] = None) -> int:
    """Parses arguments and calls the appropriate command function."""
    argv = sys.argv[1:] if argv is None else argv
    parser = build_parser()

    if not argv:  # Show help if no arguments are given
        parser.print_help(sys.stderr)
        return 1

    args = parser.parse_args(argv)
    if args.verbose:
        logging.basicConfig(level=logging.DEBUG, format="%(levelname)s %(name)s: %(message)s")

    try:
        return args.func(args)
    except (TransformError, KeyError, OSError, ValueError) as e:
        print(f"[Error] Failed: {e}", file=sys.stderr)
        return 1
    except Exception as e:
        print(f"[Error] An unexpected error occurred: {e}", file=sys.stderr)
        return 2


if __name__ == "__main__":
    sys.exit(main())
