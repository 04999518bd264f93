"""Pytest fixtures for tests."""
from __future__ import annotations

import pytest

from tsi_mapping.beio import BEW
from tsi_mapping.enums import (
    ControllerType,
    DeviceTarget,
    EncoderMode,
    InteractionMode,
    IODirection,
    TargetAssignment,
)
from tsi_mapping.frames import write_frame
from tsi_mapping.models import Device, MappingEntry, MappingFile, ModifierCondition


@pytest.fixture
def sample_file() -> MappingFile:
    """Two devices, no unassigned enum fields, f32-exact floats."""
    mixer = Device(
        name="Generic MIDI",
        comment="Mixer section",
        in_port="X1 In",
        out_port="X1 Out",
        target=DeviceTarget.DECK_A,
        mappings=[
            MappingEntry(
                command_name="Play/Pause",
                io_type=IODirection.INPUT,
                assignment=TargetAssignment.DECK_A,
                interaction_mode=InteractionMode.TOGGLE,
                midi_channel=1,
                midi_note=60,
                controller_type=ControllerType.BUTTON,
                comment="Deck A cue 1",
                modifier1=ModifierCondition(2, 1),
            ),
            MappingEntry(
                command_name="Volume",
                io_type=IODirection.INPUT,
                assignment=TargetAssignment.DECK_B,
                interaction_mode=InteractionMode.DIRECT,
                midi_channel=2,
                midi_cc=7,
                controller_type=ControllerType.FADER_OR_KNOB,
                soft_takeover=True,
                set_to_value=0.5,
            ),
            MappingEntry(
                command_name="FX Dry/Wet",
                io_type=IODirection.INPUT,
                assignment=TargetAssignment.FX_UNIT_2,
                interaction_mode=InteractionMode.RELATIVE,
                midi_channel=16,
                midi_cc=127,
                controller_type=ControllerType.ENCODER,
                invert=True,
                rotary_sensitivity=2.5,
                rotary_acceleration=0.25,
                encoder_mode=EncoderMode.MODE_3FH_41H,
                modifier1=ModifierCondition(1, 0),
                modifier2=ModifierCondition(8, 7),
            ),
            MappingEntry(
                command_name="Play/Pause",
                io_type=IODirection.OUTPUT,
                assignment=TargetAssignment.DECK_A,
                interaction_mode=InteractionMode.OUTPUT,
                midi_channel=1,
                midi_note=60,
                controller_type=ControllerType.LED,
            ),
        ],
    )
    fx = Device(
        name="FX Pads",
        target=DeviceTarget.FOCUS,
        mappings=[
            MappingEntry(
                command_name="Slot 2 Cell 3 Trigger",
                io_type=IODirection.INPUT,
                assignment=TargetAssignment.DEVICE_TARGET,
                interaction_mode=InteractionMode.TRIGGER,
                midi_channel=10,
                midi_note=0,
                controller_type=ControllerType.BUTTON,
            ),
            MappingEntry(
                command_name="Filter",
                io_type=IODirection.INPUT,
                assignment=TargetAssignment.GLOBAL,
                interaction_mode=InteractionMode.RESET,
                midi_channel=10,
                midi_note=127,
                controller_type=ControllerType.BUTTON,
                comment="Ünïcødé ✓",
            ),
        ],
    )
    return MappingFile(devices=[mixer, fx], version=1)


def cmad_payload(
    controller_type: int = 0,
    interaction_mode: int = 2,
    target: int = 0,
    comment: str = "",
    comment_length: int | None = None,
    mods: tuple = (0, 0, 0, 0),
    set_to: float = 0.0,
    tail: bytes = b"",
) -> bytes:
    """Hand-built CMAD payload; comment_length overrides the declared length."""
    w = (
        BEW()
        .u32(4)
        .u32(controller_type)
        .u32(interaction_mode)
        .i32(target)
        .u32(0)
        .u32(0)
        .u32(0)
        .f32(1.0)
        .f32(0.0)
        .zeros(8)
        .f32(set_to)
    )
    raw = comment.encode("utf-16-be")
    w.u32(len(raw) // 2 if comment_length is None else comment_length).bytes(raw)
    for v in mods:
        w.u32(v)
    return w.bytes(tail).getvalue()


def led_tail(min_ctrl=0.0, max_ctrl=1.0, min_midi=0, max_midi=127, invert=0, blend=0, resolution=0x3D800000) -> bytes:
    """The 40 bytes output mappings carry after the modifiers."""
    return (
        BEW()
        .f32(min_ctrl).u32(0).f32(max_ctrl)
        .u32(min_midi).u32(max_midi)
        .u32(invert).u32(blend).u32(0)
        .u32(resolution).u32(0)
        .getvalue()
    )


def cmai_frame(binding_id: int, command_id: int, cmad: bytes, direction: int = 0) -> bytes:
    return write_frame("CMAI", BEW().u32(binding_id).u32(direction).u32(command_id).getvalue()
                       + write_frame("CMAD", cmad))


def dcbm_list(bindings: dict) -> bytes:
    w = BEW().u32(len(bindings))
    for binding_id, name in bindings.items():
        w.bytes(write_frame("DCBM", BEW().u32(binding_id).wstr_prefixed(name).getvalue()))
    return write_frame("DCBM", w.getvalue())


def device_blob(name: str, body: bytes) -> bytes:
    """DIOM { DIOI, DEVS { 1, DEVI { name, body } } }"""
    devi = write_frame("DEVI", BEW().wstr_prefixed(name).bytes(body).getvalue())
    devs = write_frame("DEVS", BEW().u32(1).bytes(devi).getvalue())
    return write_frame("DIOM", write_frame("DIOI", BEW().u32(1).getvalue()) + devs)


def mappings_body(bindings: dict, cmais: list, extra: bytes = b"") -> bytes:
    cmas = write_frame("CMAS", BEW().u32(len(cmais)).bytes(b"".join(cmais)).getvalue())
    return write_frame("DDAT", write_frame("DDCB", dcbm_list(bindings) + extra + cmas))


@pytest.fixture
def build():
    """Raw frame builders for hand-made fixtures."""
    class _Builders:
        cmad = staticmethod(cmad_payload)
        led_tail = staticmethod(led_tail)
        cmai = staticmethod(cmai_frame)
        dcbm_list = staticmethod(dcbm_list)
        device_blob = staticmethod(device_blob)
        mappings_body = staticmethod(mappings_body)
    return _Builders
