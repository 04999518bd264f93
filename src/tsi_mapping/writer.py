from __future__ import annotations

import logging
from typing import Dict, List, Optional

from .beio import BEW
from .bindings import UNBOUND_BINDING_ID, allocate_binding_ids
from .commands import DEFAULT_CATALOG, CommandCatalog
from .enums import (
    ControllerType,
    EncoderMode,
    InteractionMode,
    IODirection,
    TargetAssignment,
)
from .exceptions import EncodeError
from .frames import write_frame
from .limits import DEFAULT_LIMITS, Limits
from .midi import format_control_name
from .models import Device, MappingEntry, MappingFile, ModifierCondition
from .validators import has_errors, validate_mapping_file
from .xml import wrap_envelope

logger = logging.getLogger(__name__)

CMAD_MARKER = 4

# The wire format has no "unassigned" value for these fields, so NONE is
# written as the application default and comes back as that default.
_CONTROLLER_TYPE_WIRE: Dict[ControllerType, int] = {
    ControllerType.NONE: 0,
    ControllerType.BUTTON: 0,
    ControllerType.FADER_OR_KNOB: 1,
    ControllerType.ENCODER: 2,
    ControllerType.LED: 65535,
}

_INTERACTION_MODE_WIRE: Dict[InteractionMode, int] = {
    InteractionMode.NONE: 2,
    InteractionMode.TOGGLE: 1,
    InteractionMode.HOLD: 2,
    InteractionMode.DIRECT: 3,
    InteractionMode.RELATIVE: 4,
    InteractionMode.INCREMENT: 5,
    InteractionMode.DECREMENT: 6,
    InteractionMode.RESET: 7,
    InteractionMode.OUTPUT: 8,
    InteractionMode.TRIGGER: 9,
}

_TARGET_WIRE: Dict[TargetAssignment, int] = {
    TargetAssignment.NONE: 0,
    TargetAssignment.DEVICE_TARGET: -1,
    TargetAssignment.GLOBAL: 0,
    TargetAssignment.DECK_A: 1,
    TargetAssignment.DECK_B: 2,
    TargetAssignment.DECK_C: 3,
    TargetAssignment.DECK_D: 4,
    TargetAssignment.FX_UNIT_1: 5,
    TargetAssignment.FX_UNIT_2: 6,
    TargetAssignment.FX_UNIT_3: 7,
    TargetAssignment.FX_UNIT_4: 8,
}


def control_descriptor(m: MappingEntry) -> Optional[str]:
    """'Ch01.CC.010' / 'Ch02.Note.C4', or None for a mapping with no MIDI control."""
    if not m.has_midi_assignment:
        return None
    return format_control_name(m.midi_channel, cc=m.midi_cc, note=m.midi_note)


class TsiWriter:
    """
    Serialises a MappingFile into the TSI frame hierarchy:

      DIOM { DIOI, DEVS { count, DEVI { name, DDAT { DDIF, DDIC, DDPT,
             DDDC { DDCI, DDCO }, DDCB { DCBM list, CMAS { count, CMAI { CMAD } } } } } } }

    The model is validated first; nothing is emitted for an invalid model.
    Binding ids are allocated per device and per call.
    """

    def __init__(self, catalog: CommandCatalog = DEFAULT_CATALOG, limits: Limits = DEFAULT_LIMITS) -> None:
        self._catalog = catalog
        self._limits = limits

    # ---------- Public API ----------

    def write(self, mf: MappingFile) -> bytes:
        """Complete .tsi document bytes."""
        return wrap_envelope(self.write_blob(mf))

    def write_blob(self, mf: MappingFile) -> bytes:
        """The binary controller blob (before Base64/XML)."""
        issues = validate_mapping_file(mf, self._catalog, self._limits)
        if has_errors(issues):
            raise EncodeError(issues)
        for sev, msg in issues:
            if sev == "warn":
                logger.warning(msg)

        dioi = BEW().u32(mf.version).getvalue()
        devs = BEW().u32(len(mf.devices))
        for device in mf.devices:
            devs.bytes(write_frame("DEVI", self._build_device(device)))

        diom = write_frame("DIOI", dioi) + write_frame("DEVS", devs.getvalue())
        return write_frame("DIOM", diom)

    # ---------- Device (DEVI/DDAT) ----------

    def _build_device(self, device: Device) -> bytes:
        descriptors = [control_descriptor(m) for m in device.mappings]
        binding_ids = allocate_binding_ids(d for d in descriptors if d is not None)

        ddat = b"".join((
            write_frame("DDIF", BEW().u32(int(device.target)).getvalue()),
            write_frame("DDIC", BEW().wstr_prefixed(device.comment).getvalue()),
            write_frame("DDPT", BEW().wstr_prefixed(device.in_port).wstr_prefixed(device.out_port).getvalue()),
            write_frame("DDDC", self._build_midi_definitions(device.mappings, descriptors)),
            write_frame("DDCB", self._build_bindings(binding_ids)
                        + self._build_mappings(device.mappings, descriptors, binding_ids)),
        ))

        logger.debug("Device %r: %d mappings, %d bindings", device.name, len(device.mappings), len(binding_ids))
        return BEW().wstr_prefixed(device.name).bytes(write_frame("DDAT", ddat)).getvalue()

    def _build_midi_definitions(self, mappings: List[MappingEntry], descriptors: List[Optional[str]]) -> bytes:
        """DDDC { DDCI { n, DCDT* }, DDCO { n, DCDT* } }; encoder mode lives here."""
        modes: Dict[str, EncoderMode] = {}
        per_dir: Dict[IODirection, List[str]] = {IODirection.INPUT: [], IODirection.OUTPUT: []}
        for m, name in zip(mappings, descriptors):
            if name is None:
                continue
            modes.setdefault(name, m.encoder_mode)
            bucket = per_dir[IODirection(m.io_type)]
            if name not in bucket:
                bucket.append(name)

        out = b""
        for id4, direction in (("DDCI", IODirection.INPUT), ("DDCO", IODirection.OUTPUT)):
            w = BEW().u32(len(per_dir[direction]))
            for name in per_dir[direction]:
                dcdt = (
                    BEW()
                    .wstr_prefixed(name)
                    .u32(int(direction))
                    .u32(0)
                    .f32(0.0)                 # default velocity
                    .u32(int(modes[name]))
                    .i32(-1)                  # no NI control id
                )
                w.bytes(write_frame("DCDT", dcdt.getvalue()))
            out += write_frame(id4, w.getvalue())
        return out

    def _build_bindings(self, binding_ids: Dict[str, int]) -> bytes:
        w = BEW().u32(len(binding_ids))
        for name, binding_id in binding_ids.items():
            w.bytes(write_frame("DCBM", BEW().u32(binding_id).wstr_prefixed(name).getvalue()))
        return write_frame("DCBM", w.getvalue())

    def _build_mappings(
        self, mappings: List[MappingEntry], descriptors: List[Optional[str]], binding_ids: Dict[str, int]
    ) -> bytes:
        w = BEW().u32(len(mappings))
        for m, name in zip(mappings, descriptors):
            binding_id = UNBOUND_BINDING_ID if name is None else binding_ids[name]
            w.bytes(write_frame("CMAI", self._build_mapping(m, binding_id)))
        return write_frame("CMAS", w.getvalue())

    # ---------- One mapping (CMAI/CMAD) ----------

    def _build_mapping(self, m: MappingEntry, binding_id: int) -> bytes:
        return (
            BEW()
            .u32(binding_id)
            .u32(int(IODirection(m.io_type)))
            .u32(self._catalog.id_for(m.command_name))
            .bytes(write_frame("CMAD", self._build_settings(m)))
            .getvalue()
        )

    def _build_settings(self, m: MappingEntry) -> bytes:
        w = (
            BEW()
            .u32(CMAD_MARKER)
            .u32(_CONTROLLER_TYPE_WIRE[ControllerType(m.controller_type)])
            .u32(_INTERACTION_MODE_WIRE[InteractionMode(m.interaction_mode)])
            .i32(_TARGET_WIRE[TargetAssignment(m.assignment)])
            .u32(0)                           # auto repeat
            .bool32(m.invert)
            .bool32(m.soft_takeover)
            .f32(m.rotary_sensitivity)
            .f32(m.rotary_acceleration)
            .zeros(8)
            .f32(m.set_to_value)
            .wstr_prefixed(m.comment)
        )
        for cond in (m.modifier1, m.modifier2):
            _write_modifier(w, cond)
        if IODirection(m.io_type) is IODirection.OUTPUT:
            (
                w.f32(m.led_min_controller)
                .u32(0)
                .f32(m.led_max_controller)
                .u32(m.led_min_midi)
                .u32(m.led_max_midi)
                .bool32(m.led_invert)
                .bool32(m.led_blend)
                .u32(0)
                .u32(int(m.resolution))
                .u32(0)
            )
        return w.getvalue()


def _write_modifier(w: BEW, cond: Optional[ModifierCondition]) -> None:
    if cond is None:
        w.u32(0).u32(0)
    else:
        w.u32(cond.modifier).u32(cond.value)
