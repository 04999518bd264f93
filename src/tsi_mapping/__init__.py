"""Traktor TSI controller-mapping codec."""
from .codec import decode, encode, read_tsi, write_tsi
from .commands import DEFAULT_CATALOG, CommandCatalog
from .enums import (
    ControllerType,
    DeviceTarget,
    EncoderMode,
    InteractionMode,
    IODirection,
    MappingResolution,
    TargetAssignment,
)
from .exceptions import EncodeError, EnvelopeError, FrameError, TsiError, XmlEntryNotFound
from .models import Device, MappingEntry, MappingFile, ModifierCondition
from .parser import TsiParser
from .report import DecodeReport
from .writer import TsiWriter
from .xml import extract_mapping_blob, unwrap_envelope, wrap_envelope

__all__ = [
    "CommandCatalog",
    "ControllerType",
    "DEFAULT_CATALOG",
    "DecodeReport",
    "Device",
    "DeviceTarget",
    "EncodeError",
    "EncoderMode",
    "EnvelopeError",
    "FrameError",
    "IODirection",
    "InteractionMode",
    "MappingEntry",
    "MappingFile",
    "MappingResolution",
    "ModifierCondition",
    "TargetAssignment",
    "TsiError",
    "TsiParser",
    "TsiWriter",
    "XmlEntryNotFound",
    "decode",
    "encode",
    "extract_mapping_blob",
    "read_tsi",
    "unwrap_envelope",
    "wrap_envelope",
    "write_tsi",
]
