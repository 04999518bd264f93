from __future__ import annotations

import struct
from typing import List, Tuple

from .exceptions import FrameError
from .limits import DEFAULT_LIMITS

_U32 = struct.Struct(">I")
_I32 = struct.Struct(">i")
_F32 = struct.Struct(">f")


def decode_utf16(raw: bytes) -> str:
    """UTF-16BE code units to text; unpaired surrogates are kept as-is."""
    try:
        return raw.decode("utf-16-be", errors="surrogatepass")
    except UnicodeDecodeError:
        return raw.decode("utf-16-be", errors="replace")


def read_wstring(data: bytes, off: int, end: int | None = None,
                 max_chars: int = DEFAULT_LIMITS.max_wstring_chars) -> Tuple[str, int]:
    """
    Reads: u32 length (UTF-16 code units), then UTF-16BE bytes (2*len).
    Returns (text, offset just past the string).
    """
    if end is None:
        end = len(data)
    if off < 0 or off + 4 > end:
        raise FrameError("Truncated wide string length", offset=off)
    n = _U32.unpack_from(data, off)[0]
    if n >= max_chars:
        raise FrameError(f"Implausible wide string length {n}", offset=off)
    stop = off + 4 + n * 2
    if stop > end:
        raise FrameError(f"Wide string of {n} chars overruns buffer", offset=off)
    text = decode_utf16(bytes(data[off + 4 : stop]))
    return text, stop


def write_wstring(text: str) -> bytes:
    """Inverse of read_wstring; the count is re-derived from the UTF-16 form."""
    raw = text.encode("utf-16-be", errors="surrogatepass")
    return _U32.pack(len(raw) // 2) + raw


def wstring_units(text: str) -> int:
    """Number of UTF-16 code units the text occupies on the wire."""
    return len(text.encode("utf-16-be", errors="surrogatepass")) // 2


class BER:
    """Big-endian reader with UTF-16BE (length-prefixed) helper."""

    def __init__(self, data: bytes, off: int = 0, end: int | None = None) -> None:
        self.data = data
        self.off = off
        self.end = len(data) if end is None else min(end, len(data))

    def tell(self) -> int:
        return self.off

    def seek(self, off: int) -> None:
        self.off = off

    def remain(self) -> int:
        return self.end - self.off

    def _need(self, n: int, what: str) -> None:
        if self.off < 0 or self.off + n > self.end:
            raise FrameError(f"Truncated {what}: need {n} bytes, {max(0, self.remain())} left", offset=self.off)

    def u32(self) -> int:
        self._need(4, "u32")
        v = _U32.unpack_from(self.data, self.off)[0]
        self.off += 4
        return v

    def i32(self) -> int:
        self._need(4, "i32")
        v = _I32.unpack_from(self.data, self.off)[0]
        self.off += 4
        return v

    def f32(self) -> float:
        self._need(4, "f32")
        v = _F32.unpack_from(self.data, self.off)[0]
        self.off += 4
        return v

    def bytes(self, n: int) -> bytes:
        self._need(n, "byte run")
        b = bytes(self.data[self.off : self.off + n])
        self.off += n
        return b

    def wstr_prefixed(self, max_chars: int = DEFAULT_LIMITS.max_wstring_chars) -> str:
        text, self.off = read_wstring(self.data, self.off, self.end, max_chars)
        return text


class BEW:
    """Big-endian writer; mirrors BER."""

    def __init__(self) -> None:
        self._parts: List[bytes] = []

    def u32(self, v: int) -> "BEW":
        self._parts.append(_U32.pack(v))
        return self

    def i32(self, v: int) -> "BEW":
        self._parts.append(_I32.pack(v))
        return self

    def f32(self, v: float) -> "BEW":
        self._parts.append(_F32.pack(v))
        return self

    def bool32(self, v: bool) -> "BEW":
        return self.u32(1 if v else 0)

    def bytes(self, b: bytes) -> "BEW":
        self._parts.append(bytes(b))
        return self

    def zeros(self, n: int) -> "BEW":
        self._parts.append(b"\x00" * n)
        return self

    def wstr_prefixed(self, text: str) -> "BEW":
        self._parts.append(write_wstring(text))
        return self

    def getvalue(self) -> bytes:
        return b"".join(self._parts)
