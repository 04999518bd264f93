from __future__ import annotations

import struct
from dataclasses import dataclass
from typing import Iterator, Optional, Tuple

from .beio import BER
from .exceptions import FrameError

HEADER_SIZE = 8

# Allow 0-9, A-Z, _, a-z
ASCII_OK = set(range(48, 58)) | set(range(65, 91)) | set(range(95, 96)) | set(range(97, 123))

KNOWN_IDS = frozenset({
    "DIOM", "DIOI", "DEVS", "DEVI", "DDAT", "DDIF", "DDIV", "DDIC", "DDPT",
    "DDDC", "DDCI", "DDCO", "DCDT", "DDCB", "DCBM", "CMAS", "CMAI", "CMAD",
    "DVST",
})


def looks_like_id(b: bytes) -> bool:
    return len(b) == 4 and all(c in ASCII_OK for c in b)


@dataclass(frozen=True)
class Frame:
    """One identifier-tagged, length-prefixed chunk. `start` is the header offset."""
    id4: str
    payload: bytes
    start: int = 0

    @property
    def size(self) -> int:
        return len(self.payload)

    @property
    def end(self) -> int:
        return self.start + HEADER_SIZE + len(self.payload)


def read_frame_header(r: BER) -> Tuple[str, int, int]:
    """
    Read a frame header and return (id4, payload_start, payload_end).

    Header.Size is the payload length, NOT including the 8-byte header itself.
    """
    at = r.tell()
    if r.remain() < HEADER_SIZE:
        raise FrameError("Truncated frame header", offset=at)
    fid = r.bytes(4).decode("ascii", errors="replace")
    size = r.u32()
    # size can be 0 for empty frames
    if r.tell() + size > r.end:
        raise FrameError(f"Invalid frame size {size} (out of bounds)", offset=at, identifier=fid)
    payload_start = r.tell()
    return fid, payload_start, payload_start + size


def read_frame(data: bytes, offset: int = 0, end: Optional[int] = None) -> Tuple[Frame, int]:
    """Parse one frame at `offset`; returns (frame, bytes consumed)."""
    r = BER(data, offset, end)
    fid, pstart, pend = read_frame_header(r)
    frame = Frame(fid, bytes(data[pstart:pend]), offset)
    return frame, pend - offset


def write_frame(id4: str, payload: bytes) -> bytes:
    tag = id4.encode("ascii")
    if len(tag) != 4:
        raise ValueError(f"Frame identifier must be 4 ASCII bytes, got {id4!r}")
    return tag + struct.pack(">I", len(payload)) + payload


def iter_frames_by_scan(data: bytes, id4: str, start: int = 0,
                        end: Optional[int] = None,
                        overlapping: bool = False) -> Iterator[Tuple[int, int]]:
    """
    Yield (payload_start, payload_end) for every occurrence of `id4` in
    [start, end) whose declared size fits the region. Sibling frames are not
    always aligned, so the scan walks byte by byte and skips one byte past a
    rejected candidate. With `overlapping`, accepted candidates are also only
    skipped by one byte, so same-named frames nested inside them are found.
    """
    if end is None:
        end = len(data)
    tag = id4.encode("ascii")
    pos = data.find(tag, start, end)
    while pos != -1 and pos + HEADER_SIZE <= end:
        size = struct.unpack_from(">I", data, pos + 4)[0]
        pend = pos + HEADER_SIZE + size
        if pend <= end:
            yield pos + HEADER_SIZE, pend
            pos = data.find(tag, pos + 1 if overlapping else pend, end)
        else:
            pos = data.find(tag, pos + 1, end)


def find_frame(data: bytes, id4: str, start: int = 0,
               end: Optional[int] = None) -> Optional[Tuple[int, int]]:
    """First validated occurrence of `id4`, as (payload_start, payload_end)."""
    return next(iter_frames_by_scan(data, id4, start, end), None)


@dataclass
class FrameNode:
    """Generic frame node with a shallow child count (for diagnostics/UI)."""
    id4: str
    start: int  # offset where frame header starts (id)
    end: int    # end offset of payload (exclusive)
    depth: int
    children_count: int


class FrameWalker:
    """
    Recursive frame walker. Yields every frame (pre-order) and also reports a
    shallow child count on each node for quick diagnostics.
    """

    def walk(self, data: bytes, start: int = 0, end: int | None = None, depth: int = 0) -> Iterator[FrameNode]:
        if end is None:
            end = len(data)
        r = BER(data, start, end)

        while r.tell() + HEADER_SIZE <= end:
            head = data[r.tell(): r.tell() + 4]
            if not looks_like_id(head):
                # resync inside container payloads when we hit non-frame bytes
                r.seek(r.tell() + 1)
                continue

            at = r.tell()
            try:
                fid, pstart, pend = read_frame_header(r)
            except FrameError:
                r.seek(at + 1)
                continue

            yield FrameNode(
                id4=fid, start=at, end=pend, depth=depth,
                children_count=self._count_children(data, pstart, pend),
            )
            yield from self.walk(data, pstart, pend, depth + 1)

            # Jump to the end of this frame to continue with next sibling
            r.seek(pend)

    def _count_children(self, data: bytes, start: int, end: int) -> int:
        """Quick shallow scan to count immediate children; tolerant of junk."""
        count = 0
        rr = BER(data, start, end)
        while rr.tell() + HEADER_SIZE <= end:
            head = data[rr.tell(): rr.tell() + 4]
            if not looks_like_id(head):
                break
            try:
                _fid, _cstart, cend = read_frame_header(rr)
            except FrameError:
                break
            count += 1
            rr.seek(cend)
        return count
