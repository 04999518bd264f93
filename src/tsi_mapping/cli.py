from __future__ import annotations

import argparse
import csv
import json
import logging
import sys
from typing import Any, Dict, List, Optional

from .codec import read_tsi, write_tsi
from .exceptions import TsiError
from .frames import FrameWalker
from .models import MappingFile
from .report import DecodeReport
from .writer import control_descriptor
from .xml import extract_mapping_blob

logger = logging.getLogger(__name__)

ROW_FIELDS = [
    "device_name",
    "command_name",
    "io_type",
    "assignment",
    "interaction_mode",
    "controller_type",
    "midi_control",
    "midi_channel",
    "midi_note",
    "midi_cc",
    "modifier1",
    "modifier2",
    "invert",
    "soft_takeover",
    "set_to_value",
    "rotary_sensitivity",
    "rotary_acceleration",
    "encoder_mode",
    "comment",
]


def mapping_rows(mf: MappingFile) -> List[Dict[str, Any]]:
    """One flat row per mapping, enum fields as their names."""
    rows = []
    for device in mf.devices:
        for m in device.mappings:
            rows.append({
                "device_name": device.name,
                "command_name": m.command_name,
                "io_type": m.io_type.name,
                "assignment": m.assignment.name,
                "interaction_mode": m.interaction_mode.name,
                "controller_type": m.controller_type.name,
                "midi_control": control_descriptor(m) or "",
                "midi_channel": m.midi_channel,
                "midi_note": m.midi_note,
                "midi_cc": m.midi_cc,
                "modifier1": str(m.modifier1) if m.modifier1 else "",
                "modifier2": str(m.modifier2) if m.modifier2 else "",
                "invert": m.invert,
                "soft_takeover": m.soft_takeover,
                "set_to_value": m.set_to_value,
                "rotary_sensitivity": m.rotary_sensitivity,
                "rotary_acceleration": m.rotary_acceleration,
                "encoder_mode": m.encoder_mode.name,
                "comment": m.comment,
            })
    return rows


def _dump_json(obj, path: str) -> None:
    with open(path, "w", encoding="utf-8") as f:
        json.dump(obj, f, indent=2, ensure_ascii=False)


def _dump_csv(rows, path: str) -> None:
    with open(path, "w", newline="", encoding="utf-8") as f:
        w = csv.DictWriter(f, fieldnames=ROW_FIELDS)
        w.writeheader()
        for r in rows:
            w.writerow(r)


def _report_summary(report: DecodeReport) -> None:
    # individual warnings were already logged by the parser
    if report.skipped_malformed:
        logger.warning("Skipped %d malformed records", report.skipped_malformed)
    if report.skipped_unassigned:
        logger.info("Skipped %d unassigned mapping slots", report.skipped_unassigned)
    if report.dropped_frames:
        logger.warning("Frames not kept on rewrite: %s", ", ".join(report.dropped_frames))


def cmd_dump(args: argparse.Namespace) -> None:
    report = DecodeReport()
    mf = read_tsi(args.tsi, report)
    _report_summary(report)
    rows = mapping_rows(mf)
    if args.json:
        _dump_json(rows, args.json)
    if args.csv:
        _dump_csv(rows, args.csv)
    if not args.json and not args.csv:
        print(json.dumps(rows, indent=2, ensure_ascii=False))


def cmd_frames(args: argparse.Namespace) -> None:
    blob = extract_mapping_blob(args.tsi)
    for node in FrameWalker().walk(blob):
        size = node.end - node.start - 8
        print(f"{'  ' * node.depth}{node.id4} @{node.start} size={size} children={node.children_count}")


def cmd_rewrite(args: argparse.Namespace) -> None:
    report = DecodeReport()
    mf = read_tsi(args.tsi, report)
    _report_summary(report)
    write_tsi(args.out, mf)
    print(f"Wrote {len(mf.devices)} devices, {len(mf.all_mappings)} mappings to {args.out}")


def build_parser() -> argparse.ArgumentParser:
    p = argparse.ArgumentParser(prog="tsi-mapping", description="Inspect and rewrite Traktor .tsi mappings.")
    p.add_argument("-v", "--verbose", action="count", default=0, help="-v for info, -vv for debug logging")
    sub = p.add_subparsers(dest="command", required=True)

    d = sub.add_parser("dump", help="flatten mappings to JSON/CSV")
    d.add_argument("tsi")
    d.add_argument("--json", metavar="OUT")
    d.add_argument("--csv", metavar="OUT")
    d.set_defaults(func=cmd_dump)

    f = sub.add_parser("frames", help="print the raw frame tree")
    f.add_argument("tsi")
    f.set_defaults(func=cmd_frames)

    r = sub.add_parser("rewrite", help="decode and re-encode a file")
    r.add_argument("tsi")
    r.add_argument("out")
    r.set_defaults(func=cmd_rewrite)
    return p


def main(argv: Optional[List[str]] = None) -> int:
    args = build_parser().parse_args(argv)
    level = logging.WARNING if args.verbose == 0 else logging.INFO if args.verbose == 1 else logging.DEBUG
    logging.basicConfig(level=level, format="%(asctime)s - %(name)s - %(levelname)s - %(message)s")
    try:
        args.func(args)
    except (TsiError, OSError) as e:
        print(f"error: {e}", file=sys.stderr)
        return 1
    return 0


if __name__ == "__main__":
    sys.exit(main())
