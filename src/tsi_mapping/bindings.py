from __future__ import annotations

import logging
from typing import Dict, Iterable, Optional

from .beio import BER, decode_utf16, read_wstring
from .exceptions import FrameError
from .frames import iter_frames_by_scan
from .limits import DEFAULT_LIMITS, Limits
from .report import DecodeReport

logger = logging.getLogger(__name__)

BindingTable = Dict[int, str]  # binding id -> "Ch01.CC.100"

# CMAI binding id written for mappings with no MIDI control; never has a DCBM
UNBOUND_BINDING_ID = 0xFFFFFFFF


def build_binding_table(
    data: bytes,
    start: int = 0,
    end: Optional[int] = None,
    limits: Limits = DEFAULT_LIMITS,
    report: Optional[DecodeReport] = None,
) -> BindingTable:
    """
    Collect binding id -> MIDI control name for one device region.

    Pass 1 reads every DCBM chunk {id u32, len u32, UTF-16BE[len]}. The DCBM
    list container shares the tag, so the scan is overlapping and relies on
    the size/length checks to reject the container itself.

    Pass 2 reads the input-side (DDCI) DCDT MIDI definitions and files each
    name under its sequential index, only where pass 1 left a gap. Output
    definitions (DDCO) are never indexed. With no DDCI present the whole
    region is scanned.
    """
    if end is None:
        end = len(data)
    table: BindingTable = {}

    for pstart, pend in iter_frames_by_scan(data, "DCBM", start, end, overlapping=True):
        size = pend - pstart
        if not 8 < size < limits.max_binding_chunk:
            continue
        r = BER(data, pstart, pend)
        binding_id = r.u32()
        n = r.u32()
        if not 0 < n < limits.max_binding_chars or 8 + n * 2 > size:
            continue
        name = decode_utf16(r.bytes(n * 2))
        if binding_id in table and table[binding_id] != name and report is not None:
            report.warn(f"Binding {binding_id} redefined: {table[binding_id]!r} -> {name!r}")
        table[binding_id] = name

    primary = len(table)
    regions = list(iter_frames_by_scan(data, "DDCI", start, end)) or [(start, end)]
    index = 0
    for rstart, rend in regions:
        for pstart, pend in iter_frames_by_scan(data, "DCDT", rstart, rend, overlapping=True):
            if not 0 < pend - pstart < limits.max_definition_chunk:
                continue
            try:
                name, _ = read_wstring(data, pstart, pend, limits.max_wstring_chars)
            except FrameError:
                name = ""
            if name and index not in table:
                table[index] = name
            index += 1

    logger.debug("Binding table: %d primary, %d total", primary, len(table))
    return table


def allocate_binding_ids(descriptors: Iterable[str]) -> Dict[str, int]:
    """Sequential ids for each unique descriptor, in first-seen order."""
    ids: Dict[str, int] = {}
    for name in descriptors:
        if name not in ids:
            ids[name] = len(ids)
    return ids
