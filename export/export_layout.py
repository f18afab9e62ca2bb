"""Compute a family tree layout from a records file and write it as JSON.

Imports the ``familytree`` package, so run it from an installed checkout
(``pip install -e .``) or with the repository root on ``PYTHONPATH``:

    python export/export_layout.py --in tree.jsonl --out layout.json --mode compact
"""

from __future__ import annotations

import argparse
import json
import logging
import sys
from pathlib import Path

from familytree.config import LayoutConfig, LayoutConfigError
from familytree.layout import LAYOUT_MODES, compute_layout
from familytree.records import load_records_file
from familytree.serialize import layout_to_public


def main() -> int:
    parser = argparse.ArgumentParser(description="Compute a family tree layout and write it as JSON")
    parser.add_argument("--in", dest="in_path", required=True, help="Records file (.json or typed .jsonl)")
    parser.add_argument("--out", default="-", help="Output JSON path ('-' for stdout)")
    parser.add_argument("--mode", choices=LAYOUT_MODES, default="compact", help="Layout strategy")
    parser.add_argument("--focus", default=None, help="Focus person id (required for --mode focus)")
    parser.add_argument(
        "--root",
        default=None,
        help="Root person id (default: FAMILYTREE_ROOT_ID or [I0000])",
    )
    parser.add_argument("--verbose", action="store_true", help="Log traversal detail")
    args = parser.parse_args()

    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.INFO,
        format="%(levelname)s %(name)s: %(message)s",
    )

    in_path = Path(args.in_path)
    if not in_path.exists():
        raise SystemExit(f"Input not found: {in_path}")
    if args.mode == "focus" and not args.focus:
        raise SystemExit("--focus is required with --mode focus")

    try:
        config = LayoutConfig.from_env()
        if args.root:
            config = config.with_overrides({"root_id": args.root})
    except LayoutConfigError as e:
        raise SystemExit(f"Invalid layout configuration: {e}")

    records = load_records_file(in_path)
    result = compute_layout(records, config, mode=args.mode, focus_id=args.focus)
    if result.is_empty:
        logging.getLogger(__name__).warning("Layout is empty (root or focus person not found?)")

    payload = json.dumps(layout_to_public(result, records, config.root_id), indent=2, ensure_ascii=False)
    if args.out == "-":
        sys.stdout.write(payload + "\n")
    else:
        out_path = Path(args.out)
        out_path.parent.mkdir(parents=True, exist_ok=True)
        out_path.write_text(payload + "\n", encoding="utf-8")
        print(json.dumps({"mode": result.mode, "nodes": len(result.positions), "out": str(out_path)}))
    return 0


if __name__ == "__main__":
    raise SystemExit(main())
