from __future__ import annotations

import math
from typing import Dict, List

from .beio import wstring_units
from .commands import DEFAULT_CATALOG, CommandCatalog
from .enums import (
    ControllerType,
    DeviceTarget,
    EncoderMode,
    InteractionMode,
    IODirection,
    TargetAssignment,
)
from .limits import DEFAULT_LIMITS, Limits
from .midi import format_control_name
from .models import MappingEntry, MappingFile, ModifierCondition
from .report import Issue

_F32_MAX = 3.4028234663852886e38
_U32_MAX = 0xFFFFFFFF


def _check_modifier(ctx: str, slot: int, cond: ModifierCondition | None, issues: List[Issue]) -> None:
    if cond is None:
        return
    if not 1 <= cond.modifier <= 8:
        issues.append(("error", f"{ctx} modifier{slot} id out of range: {cond.modifier}"))
    if not 0 <= cond.value <= 7:
        issues.append(("error", f"{ctx} modifier{slot} value out of range: {cond.value}"))


def _check_enum(ctx: str, label: str, enum_cls, value, issues: List[Issue]) -> None:
    try:
        enum_cls(value)
    except ValueError:
        issues.append(("error", f"{ctx} {label} is not a valid {enum_cls.__name__}: {value!r}"))


def validate_mapping(ctx: str, m: MappingEntry, catalog: CommandCatalog, limits: Limits) -> List[Issue]:
    issues: List[Issue] = []

    if m.midi_note is not None and m.midi_cc is not None:
        issues.append(("error", f"{ctx} has both note {m.midi_note} and CC {m.midi_cc}"))
    if not 1 <= m.midi_channel <= 16:
        issues.append(("error", f"{ctx} MIDI channel out of range: {m.midi_channel}"))
    for label, v in (("note", m.midi_note), ("CC", m.midi_cc)):
        if v is not None and not 0 <= v <= 127:
            issues.append(("error", f"{ctx} {label} number out of range: {v}"))

    command_id = catalog.id_for(m.command_name)
    if command_id == 0:
        issues.append(("error", f"{ctx} unknown command {m.command_name!r}"))
    elif command_id > _U32_MAX:
        issues.append(("error", f"{ctx} command id out of range: {command_id}"))

    for label, enum_cls, value in (
        ("io_type", IODirection, m.io_type),
        ("assignment", TargetAssignment, m.assignment),
        ("interaction_mode", InteractionMode, m.interaction_mode),
        ("controller_type", ControllerType, m.controller_type),
        ("encoder_mode", EncoderMode, m.encoder_mode),
    ):
        _check_enum(ctx, label, enum_cls, value, issues)

    _check_modifier(ctx, 1, m.modifier1, issues)
    _check_modifier(ctx, 2, m.modifier2, issues)

    if wstring_units(m.comment) >= limits.max_comment_chars:
        issues.append(("error", f"{ctx} comment too long ({len(m.comment)} chars)"))

    for label, v in (("set_to_value", m.set_to_value), ("rotary_sensitivity", m.rotary_sensitivity),
                     ("rotary_acceleration", m.rotary_acceleration),
                     ("led_min_controller", m.led_min_controller), ("led_max_controller", m.led_max_controller)):
        if not math.isfinite(v) or abs(v) > _F32_MAX:
            issues.append(("error", f"{ctx} {label} does not fit a 32-bit float: {v}"))

    if not 0.0 <= m.set_to_value <= 1.0:
        issues.append(("warn", f"{ctx} set_to_value outside 0..1: {m.set_to_value}"))
    if not 0.0 <= m.rotary_sensitivity <= 3.0:
        issues.append(("warn", f"{ctx} rotary_sensitivity outside 0..3: {m.rotary_sensitivity}"))
    if not 0.0 <= m.rotary_acceleration <= 1.0:
        issues.append(("warn", f"{ctx} rotary_acceleration outside 0..1: {m.rotary_acceleration}"))

    for label, v in (("led_min_midi", m.led_min_midi), ("led_max_midi", m.led_max_midi)):
        if not 0 <= v <= 127:
            issues.append(("error", f"{ctx} {label} out of range: {v}"))
    if not 0 <= m.resolution <= _U32_MAX:
        issues.append(("error", f"{ctx} resolution does not fit a DWORD: {m.resolution}"))
    if m.has_custom_led and m.io_type == IODirection.INPUT:
        issues.append(("info", f"{ctx} LED settings on an input mapping are not written"))

    # set_to_value is only meaningful in DIRECT
    if m.set_to_value and m.interaction_mode != InteractionMode.DIRECT:
        issues.append(("info", f"{ctx} set_to_value set but mode is not DIRECT"))

    return issues


def validate_mapping_file(
    mf: MappingFile,
    catalog: CommandCatalog = DEFAULT_CATALOG,
    limits: Limits = DEFAULT_LIMITS,
) -> List[Issue]:
    """Everything the writer would have to refuse ("error") or lose ("warn")."""
    issues: List[Issue] = []

    if not 0 <= mf.version <= _U32_MAX:
        issues.append(("error", f"file version does not fit a DWORD: {mf.version}"))

    for d_i, device in enumerate(mf.devices):
        _check_enum(f"[device {d_i}]", "target", DeviceTarget, device.target, issues)
        for label, text in (("name", device.name), ("comment", device.comment),
                            ("in_port", device.in_port), ("out_port", device.out_port)):
            if wstring_units(text) >= limits.max_wstring_chars:
                issues.append(("error", f"[device {d_i}] {label} too long"))

        encoder_modes: Dict[str, EncoderMode] = {}
        for m_i, m in enumerate(device.mappings):
            ctx = f"[device {d_i} mapping {m_i} cmd={m.command_name!r}]"
            found = validate_mapping(ctx, m, catalog, limits)
            issues.extend(found)
            if not m.has_midi_assignment or any(sev == "error" for sev, _ in found):
                continue
            # Encoder mode is stored once per physical control
            name = format_control_name(m.midi_channel, cc=m.midi_cc, note=m.midi_note)
            first = encoder_modes.setdefault(name, m.encoder_mode)
            if first != m.encoder_mode:
                issues.append(("warn", f"{ctx} encoder mode differs from earlier mapping on {name}; "
                                       f"{first.name} will be written"))

    return issues


def has_errors(issues: List[Issue]) -> bool:
    return any(sev == "error" for sev, _ in issues)
