from __future__ import annotations

import uuid
from dataclasses import dataclass, field
from typing import List, Optional

from .enums import (
    ControllerType,
    DeviceTarget,
    EncoderMode,
    InteractionMode,
    IODirection,
    MappingResolution,
    TargetAssignment,
)


_LED_DEFAULTS = (0.0, 1.0, 0, 127, False, False, MappingResolution.DEFAULT)


def _new_id() -> str:
    return uuid.uuid4().hex


@dataclass(frozen=True)
class ModifierCondition:
    """Mapping is active only while modifier M`modifier` (1..8) equals `value` (0..7)."""
    modifier: int
    value: int

    def __str__(self) -> str:
        return f"M{self.modifier} = {self.value}"


@dataclass
class MappingEntry:
    """
    One MIDI control bound to one Traktor command.

    Notes
    -----
    - At most one of midi_note / midi_cc is set; both None means unassigned.
    - Float fields travel as IEEE single precision, so values that are not
      exactly representable come back rounded.
    - `id` is a session identity and takes no part in equality.
    """

    command_name: str = ""
    io_type: IODirection = IODirection.INPUT
    assignment: TargetAssignment = TargetAssignment.NONE
    interaction_mode: InteractionMode = InteractionMode.NONE

    midi_channel: int = 1                   # 1..16
    midi_note: Optional[int] = None         # 0..127
    midi_cc: Optional[int] = None           # 0..127

    modifier1: Optional[ModifierCondition] = None
    modifier2: Optional[ModifierCondition] = None

    comment: str = ""
    controller_type: ControllerType = ControllerType.NONE
    invert: bool = False

    # Controller-type specific
    soft_takeover: bool = False             # fader/knob
    set_to_value: float = 0.0               # button, direct mode (0.0..1.0)
    rotary_sensitivity: float = 1.0         # encoder (0.0..3.0)
    rotary_acceleration: float = 0.0        # encoder (0.0..1.0)
    encoder_mode: EncoderMode = EncoderMode.MODE_7FH_01H

    # LED / meter ranges; only written for output mappings
    led_min_controller: float = 0.0
    led_max_controller: float = 1.0
    led_min_midi: int = 0                   # 0..127
    led_max_midi: int = 127                 # 0..127
    led_invert: bool = False
    led_blend: bool = False
    resolution: int = MappingResolution.DEFAULT  # raw DWORD when not a known MappingResolution

    id: str = field(default_factory=_new_id, compare=False)

    @property
    def has_midi_assignment(self) -> bool:
        return self.midi_note is not None or self.midi_cc is not None

    @property
    def has_custom_led(self) -> bool:
        return (self.led_min_controller, self.led_max_controller, self.led_min_midi, self.led_max_midi,
                self.led_invert, self.led_blend, self.resolution) != _LED_DEFAULTS


@dataclass
class Device:
    """A controller definition: ports, default target and its ordered mappings."""
    name: str = ""
    comment: str = ""
    in_port: str = ""
    out_port: str = ""
    target: DeviceTarget = DeviceTarget.FOCUS
    mappings: List[MappingEntry] = field(default_factory=list)

    id: str = field(default_factory=_new_id, compare=False)


@dataclass
class MappingFile:
    """A complete controller-mapping file; device order is file order."""
    devices: List[Device] = field(default_factory=list)
    version: int = 1

    @property
    def all_mappings(self) -> List[MappingEntry]:
        return [m for d in self.devices for m in d.mappings]
