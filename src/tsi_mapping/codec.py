"""File-level entry points: .tsi bytes <-> MappingFile."""
from __future__ import annotations

from typing import Optional

from .commands import DEFAULT_CATALOG, CommandCatalog
from .models import MappingFile
from .parser import TsiParser
from .report import DecodeReport
from .writer import TsiWriter
from .xml import unwrap_envelope


def decode(document: bytes, report: Optional[DecodeReport] = None,
           catalog: CommandCatalog = DEFAULT_CATALOG) -> MappingFile:
    """Raises EnvelopeError/FrameError only when the file as a whole is unreadable."""
    return TsiParser(catalog=catalog).parse(unwrap_envelope(document), report)


def encode(mf: MappingFile, catalog: CommandCatalog = DEFAULT_CATALOG) -> bytes:
    """Raises EncodeError before producing any bytes if the model is invalid."""
    return TsiWriter(catalog=catalog).write(mf)


def read_tsi(path: str, report: Optional[DecodeReport] = None) -> MappingFile:
    with open(path, "rb") as f:
        return decode(f.read(), report)


def write_tsi(path: str, mf: MappingFile) -> None:
    data = encode(mf)
    with open(path, "wb") as f:
        f.write(data)
