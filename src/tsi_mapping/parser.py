from __future__ import annotations

import logging
import math
from dataclasses import dataclass
from typing import Dict, List, Optional

from .beio import BER, decode_utf16, read_wstring
from .bindings import UNBOUND_BINDING_ID, BindingTable, build_binding_table
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
from .exceptions import FrameError
from .frames import HEADER_SIZE, KNOWN_IDS, find_frame, iter_frames_by_scan, read_frame_header
from .limits import DEFAULT_LIMITS, Limits
from .midi import parse_control_name
from .models import Device, MappingEntry, MappingFile, ModifierCondition
from .report import DecodeReport

logger = logging.getLogger(__name__)

CMAD_FIXED_SIZE = 52   # everything before the comment characters
CMAI_HEADER_SIZE = 12
LED_TAIL_SIZE = 40     # output mappings only, after the modifiers

_CONTROLLER_TYPES: Dict[int, ControllerType] = {
    0: ControllerType.BUTTON,
    1: ControllerType.FADER_OR_KNOB,
    2: ControllerType.ENCODER,
    65535: ControllerType.LED,
}

_INTERACTION_MODES: Dict[int, InteractionMode] = {
    1: InteractionMode.TOGGLE,
    2: InteractionMode.HOLD,
    3: InteractionMode.DIRECT,
    4: InteractionMode.RELATIVE,
    5: InteractionMode.INCREMENT,
    6: InteractionMode.DECREMENT,
    7: InteractionMode.RESET,
    8: InteractionMode.OUTPUT,
    9: InteractionMode.TRIGGER,
}

_TARGETS: Dict[int, TargetAssignment] = {
    -1: TargetAssignment.DEVICE_TARGET,
    0: TargetAssignment.GLOBAL,
    1: TargetAssignment.DECK_A,
    2: TargetAssignment.DECK_B,
    3: TargetAssignment.DECK_C,
    4: TargetAssignment.DECK_D,
    5: TargetAssignment.FX_UNIT_1,
    6: TargetAssignment.FX_UNIT_2,
    7: TargetAssignment.FX_UNIT_3,
    8: TargetAssignment.FX_UNIT_4,
}


@dataclass
class _Settings:
    """Decoded CMAD block; defaults stand in for anything missing."""
    controller_type: int = 0
    interaction_mode: int = 0
    target: int = 0
    invert: bool = False
    soft_takeover: bool = False
    rotary_sensitivity: float = 1.0
    rotary_acceleration: float = 0.0
    set_to_value: float = 0.0
    comment: str = ""
    mod1_id: int = 0
    mod1_val: int = 0
    mod2_id: int = 0
    mod2_val: int = 0
    led_min_controller: float = 0.0
    led_max_controller: float = 1.0
    led_min_midi: int = 0
    led_max_midi: int = 127
    led_invert: bool = False
    led_blend: bool = False
    resolution: int = MappingResolution.DEFAULT


class TsiParser:
    """
    Decoder for Traktor TSI controller-mapping binary blobs.

    - Root DIOM/DEVS problems are fatal (FrameError)
    - Anything below a DEVI is recovered locally: the broken record is
      skipped and noted in the DecodeReport
    - DCBM bindings and CMAI mappings are located by byte scan, since those
      regions are not reliably frame-aligned
    - CMAI records with command id 0 are unassigned slots and are dropped
    """

    def __init__(self, catalog: CommandCatalog = DEFAULT_CATALOG, limits: Limits = DEFAULT_LIMITS) -> None:
        self._catalog = catalog
        self._limits = limits

    # ---------- Public API ----------

    def parse(self, blob: bytes, report: Optional[DecodeReport] = None) -> MappingFile:
        if report is None:
            report = DecodeReport()
        data = bytes(blob)

        if data[:4] == b"DIOM":
            _fid, start, end = read_frame_header(BER(data))
        else:
            loc = find_frame(data, "DIOM")
            if loc is None:
                raise FrameError("Root frame 'DIOM' not found", offset=0)
            start, end = loc

        version = 1
        dioi = find_frame(data, "DIOI", start, end)
        if dioi is not None and dioi[1] - dioi[0] >= 4:
            version = BER(data, *dioi).u32()
        else:
            report.warn("DIOI version frame missing; assuming version 1")

        devs = find_frame(data, "DEVS", start, end)
        if devs is None:
            raise FrameError("Device list 'DEVS' not found", offset=start, identifier="DIOM")
        r = BER(data, *devs)
        if r.remain() < 4:
            raise FrameError("Device list has no count", offset=devs[0] - HEADER_SIZE, identifier="DEVS")
        declared = r.u32()

        devices: List[Device] = []
        while r.remain() >= HEADER_SIZE:
            at = r.tell()
            try:
                fid, cstart, cend = read_frame_header(r)
            except FrameError as e:
                report.malformed(f"Device list cut short: {e}")
                break
            if fid == "DEVI":
                devices.append(self._parse_device(data, cstart, cend, report))
            else:
                report.unknown_frame(fid, f"DEVS at offset {at}")
            r.seek(cend)

        if declared != len(devices):
            report.warn(f"DEVS declares {declared} devices, found {len(devices)}")
        return MappingFile(devices=devices, version=version)

    # ---------- Internal: devices ----------

    def _parse_device(self, data: bytes, start: int, end: int, report: DecodeReport) -> Device:
        try:
            name, off = read_wstring(data, start, end, self._limits.max_wstring_chars)
        except FrameError as e:
            report.warn(f"Unreadable device name: {e}")
            name, off = "Unknown Device", start

        device = Device(name=name)
        table = build_binding_table(data, off, end, self._limits, report)

        midi_defs: Dict[str, EncoderMode] = {}
        ddat = find_frame(data, "DDAT", off, end)
        if ddat is not None:
            midi_defs = self._parse_device_data(data, ddat[0], ddat[1], device, report)
        else:
            report.warn(f"Device {name!r} has no DDAT frame")

        cmas = find_frame(data, "CMAS", off, end)
        if cmas is not None:
            device.mappings = self._parse_mappings(data, cmas[0], cmas[1], table, midi_defs, report)
        else:
            report.info(f"Device {name!r} has no mapping list")

        logger.debug("Device %r with %d mappings", name, len(device.mappings))
        return device

    def _parse_device_data(
        self, data: bytes, start: int, end: int, device: Device, report: DecodeReport
    ) -> Dict[str, EncoderMode]:
        """Fills device metadata from DDAT children; returns MIDI definitions."""
        midi_defs: Dict[str, EncoderMode] = {}
        r = BER(data, start, end)
        while r.remain() >= HEADER_SIZE:
            try:
                fid, cstart, cend = read_frame_header(r)
            except FrameError as e:
                report.malformed(f"Device {device.name!r} data cut short: {e}")
                break

            try:
                rr = BER(data, cstart, cend)
                if fid == "DDIF":  # DeviceTargetInfo
                    raw = rr.u32()
                    try:
                        device.target = DeviceTarget(raw)
                    except ValueError:
                        report.warn(f"Device {device.name!r}: unknown device target {raw}")
                elif fid == "DDIC":
                    device.comment = rr.wstr_prefixed(self._limits.max_wstring_chars)
                elif fid == "DDPT":
                    device.in_port = rr.wstr_prefixed(self._limits.max_wstring_chars)
                    device.out_port = rr.wstr_prefixed(self._limits.max_wstring_chars)
                elif fid == "DDDC":
                    midi_defs.update(self._parse_midi_definitions(data, cstart, cend, report))
                elif fid == "DDCB":
                    _check_binding_container(data, cstart, cend, device.name, report)
                elif fid in ("DDIV", "DVST"):
                    report.dropped_frame(fid, f"device {device.name!r}")
                elif fid not in KNOWN_IDS:
                    report.unknown_frame(fid, f"device {device.name!r}")
            except FrameError as e:
                report.malformed(f"Device {device.name!r}: bad {fid} frame: {e}")

            r.seek(cend)
        return midi_defs

    # ---------- MIDI definitions (DDDC -> DDCI/DDCO with DCDT entries) ----------

    def _parse_midi_definitions(
        self, data: bytes, start: int, end: int, report: DecodeReport
    ) -> Dict[str, EncoderMode]:
        """
        Returns control name -> encoder mode.
          DDDC { DDCI { count; DCDT... }  DDCO { count; DCDT... } }
          DCDT { name; direction; unknown; velocity f32; encoder mode; control id }
        """
        out: Dict[str, EncoderMode] = {}
        r = BER(data, start, end)
        while r.remain() >= HEADER_SIZE:
            fid, lstart, lend = read_frame_header(r)
            if fid in ("DDCI", "DDCO"):
                rr = BER(data, lstart, lend)
                count = rr.u32()
                for _ in range(count):
                    if rr.remain() < HEADER_SIZE:
                        report.warn(f"{fid} declares {count} definitions but is shorter")
                        break
                    fid2, dstart, dend = read_frame_header(rr)
                    if fid2 == "DCDT":
                        d = BER(data, dstart, dend)
                        name = d.wstr_prefixed(self._limits.max_wstring_chars)
                        _direction = d.u32()
                        _unknown = d.u32()
                        _velocity = d.f32()
                        mode_raw = d.u32()
                        try:
                            out.setdefault(name, EncoderMode(mode_raw))
                        except ValueError:
                            report.warn(f"MIDI definition {name!r}: unknown encoder mode {mode_raw}")
                    rr.seek(dend)
            r.seek(lend)
        return out

    # ---------- Mappings list (CMAS) ----------

    def _parse_mappings(
        self,
        data: bytes,
        start: int,
        end: int,
        table: BindingTable,
        midi_defs: Dict[str, EncoderMode],
        report: DecodeReport,
    ) -> List[MappingEntry]:
        declared = BER(data, start, end).u32() if end - start >= 4 else None

        out: List[MappingEntry] = []
        seen = 0
        for mstart, mend in iter_frames_by_scan(data, "CMAI", start, end):
            seen += 1
            mapping = self._read_mapping(data, mstart, mend, table, midi_defs, report)
            if mapping is not None:
                out.append(mapping)

        if declared is not None and declared != seen:
            report.warn(f"CMAS declares {declared} mappings, found {seen}")
        return out

    # ---------- One mapping (CMAI/CMAD) ----------

    def _read_mapping(
        self,
        data: bytes,
        start: int,
        end: int,
        table: BindingTable,
        midi_defs: Dict[str, EncoderMode],
        report: DecodeReport,
    ) -> Optional[MappingEntry]:
        if end - start < CMAI_HEADER_SIZE:
            report.malformed(f"CMAI at offset {start - HEADER_SIZE} too short ({end - start} bytes)")
            return None

        r = BER(data, start, end)
        binding_id = r.u32()
        direction = r.u32()  # 0 In, 1 Out
        command_id = r.u32()

        if command_id == 0:
            report.skipped_unassigned += 1
            return None

        io_type = IODirection.OUTPUT if direction == 1 else IODirection.INPUT

        control_name = table.get(binding_id)
        if control_name is None:
            if binding_id != UNBOUND_BINDING_ID:
                report.unresolved_bindings += 1
                report.info(f"Binding {binding_id} not in binding table")
            control_name = f"Ctrl_{binding_id}"

        ctx = f"mapping {command_id} on {control_name}"
        cmad = find_frame(data, "CMAD", r.tell(), end)
        if cmad is not None:
            s = self._read_settings(data, cmad[0], cmad[1], io_type is IODirection.OUTPUT, ctx, report)
        else:
            report.warn(f"{ctx}: no CMAD settings, using defaults")
            s = _Settings()

        ctrl = parse_control_name(control_name)

        mode = _INTERACTION_MODES.get(s.interaction_mode)
        if mode is None:
            mode = InteractionMode.OUTPUT if io_type is IODirection.OUTPUT else InteractionMode.HOLD

        return MappingEntry(
            command_name=self._catalog.name_for(command_id),
            io_type=io_type,
            assignment=_TARGETS.get(s.target, TargetAssignment.GLOBAL),
            interaction_mode=mode,
            midi_channel=ctrl.channel,
            midi_note=None if ctrl.is_cc else ctrl.number,
            midi_cc=ctrl.number if ctrl.is_cc else None,
            modifier1=_modifier(s.mod1_id, s.mod1_val, ctx, report),
            modifier2=_modifier(s.mod2_id, s.mod2_val, ctx, report),
            comment=s.comment,
            controller_type=_CONTROLLER_TYPES.get(s.controller_type, ControllerType.BUTTON),
            invert=s.invert,
            soft_takeover=s.soft_takeover,
            set_to_value=s.set_to_value,
            rotary_sensitivity=s.rotary_sensitivity,
            rotary_acceleration=s.rotary_acceleration,
            encoder_mode=midi_defs.get(control_name, EncoderMode.MODE_7FH_01H),
            led_min_controller=s.led_min_controller,
            led_max_controller=s.led_max_controller,
            led_min_midi=s.led_min_midi,
            led_max_midi=s.led_max_midi,
            led_invert=s.led_invert,
            led_blend=s.led_blend,
            resolution=s.resolution,
        )

    def _read_settings(
        self, data: bytes, start: int, end: int, output: bool, ctx: str, report: DecodeReport
    ) -> _Settings:
        """
        CMAD layout:
          0 marker | 4 controller type | 8 interaction mode | 12 target (i32)
          16 auto repeat | 20 invert | 24 soft takeover | 28 sensitivity f32
          32 acceleration f32 | 36 reserved[8] | 44 set-to f32
          48 comment length | 52 comment UTF-16BE | then mod1 id/val, mod2 id/val
          output mappings: 40-byte LED tail (see _read_led_tail)
        """
        s = _Settings()
        size = end - start
        if size < CMAD_FIXED_SIZE:
            report.warn(f"{ctx}: CMAD too short ({size} bytes), using defaults")
            return s

        r = BER(data, start, end)
        _marker = r.u32()
        s.controller_type = r.u32()
        s.interaction_mode = r.u32()
        s.target = r.i32()
        _auto_repeat = r.u32()
        s.invert = r.u32() != 0
        s.soft_takeover = r.u32() != 0
        s.rotary_sensitivity = _clean_f(r.f32(), 1.0, "rotary_sensitivity", ctx, report)
        s.rotary_acceleration = _clean_f(r.f32(), 0.0, "rotary_acceleration", ctx, report)
        r.bytes(8)
        s.set_to_value = _clean_f(r.f32(), 0.0, "set_to_value", ctx, report)

        # A zero or implausible length means there is no comment and the
        # modifiers follow the fixed block directly.
        n = r.u32()
        if 0 < n < self._limits.max_comment_chars and r.remain() >= n * 2:
            s.comment = decode_utf16(r.bytes(n * 2))
        elif n != 0:
            report.warn(f"{ctx}: implausible comment length {n}, ignoring comment")

        if r.remain() >= 16:
            s.mod1_id = r.u32()
            s.mod1_val = r.u32()
            s.mod2_id = r.u32()
            s.mod2_val = r.u32()
        else:
            report.info(f"{ctx}: no modifier fields")
            return s

        if r.remain() == 0:
            return s
        if output and r.remain() == LED_TAIL_SIZE:
            _read_led_tail(r, s, ctx, report)
        elif output:
            report.warn(f"{ctx}: unexpected {r.remain()} byte LED tail, using LED defaults")
        else:
            report.info(f"{ctx}: ignoring {r.remain()} trailing bytes on input mapping")
        return s


def _check_binding_container(data: bytes, start: int, end: int, device_name: str, report: DecodeReport) -> None:
    """DDCB holds the DCBM list and CMAS; anything else there is noted, not kept."""
    r = BER(data, start, end)
    while r.remain() >= HEADER_SIZE:
        try:
            fid, _cstart, cend = read_frame_header(r)
        except FrameError as e:
            # bindings and mappings are recovered by scan regardless
            report.info(f"Device {device_name!r} bindings container not frame-aligned: {e}")
            return
        if fid not in ("DCBM", "CMAS"):
            report.unknown_frame(fid, f"bindings of device {device_name!r}")
        r.seek(cend)


def _read_led_tail(r: BER, s: _Settings, ctx: str, report: DecodeReport) -> None:
    """
    LED tail: min ctrl f32 | reserved | max ctrl f32 | min MIDI | max MIDI
              | invert | blend | reserved | resolution DWORD | reserved
    Accepted only when both MIDI bounds are 0..127; otherwise defaults stay.
    """
    min_ctrl = r.f32()
    r.u32()
    max_ctrl = r.f32()
    min_midi = r.u32()
    max_midi = r.u32()
    invert = r.u32()
    blend = r.u32()
    r.u32()
    resolution = r.u32()
    r.u32()

    if not (0 <= min_midi <= 127 and 0 <= max_midi <= 127):
        report.warn(f"{ctx}: LED MIDI range {min_midi}..{max_midi} out of bounds, using LED defaults")
        return
    s.led_min_controller = _clean_f(min_ctrl, 0.0, "led_min_controller", ctx, report)
    s.led_max_controller = _clean_f(max_ctrl, 1.0, "led_max_controller", ctx, report)
    s.led_min_midi = min_midi
    s.led_max_midi = max_midi
    s.led_invert = invert != 0
    s.led_blend = blend != 0
    try:
        s.resolution = MappingResolution(resolution)
    except ValueError:
        s.resolution = resolution


def _clean_f(v: float, default: float, label: str, ctx: str, report: DecodeReport) -> float:
    if math.isnan(v) or math.isinf(v):
        report.warn(f"{ctx}: {label} is not finite, using {default}")
        return default
    return v


def _modifier(mod_id: int, value: int, ctx: str, report: DecodeReport) -> Optional[ModifierCondition]:
    if mod_id == 0:
        return None
    if not 1 <= mod_id <= 8 or not 0 <= value <= 7:
        report.warn(f"{ctx}: dropping out-of-range modifier condition M{mod_id} = {value}")
        return None
    return ModifierCondition(mod_id, value)
