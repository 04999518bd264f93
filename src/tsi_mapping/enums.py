from __future__ import annotations

from enum import IntEnum


class DeviceTarget(IntEnum):
    """Device target (top-level device scope, DDIF)."""
    FOCUS = 0
    DECK_A = 1
    DECK_B = 2
    DECK_C = 3
    DECK_D = 4


class EncoderMode(IntEnum):
    """Encoder delta coding as stored in MidiDefinition (DCDT)."""
    MODE_3FH_41H = 0
    MODE_7FH_01H = 1


class IODirection(IntEnum):
    """CMAI mapping type."""
    INPUT = 0
    OUTPUT = 1


class TargetAssignment(IntEnum):
    """
    Per-mapping deck scope. NONE has no wire value; the writer substitutes
    GLOBAL for it.
    """
    NONE = -2
    DEVICE_TARGET = -1
    GLOBAL = 0
    DECK_A = 1
    DECK_B = 2
    DECK_C = 3
    DECK_D = 4
    FX_UNIT_1 = 5
    FX_UNIT_2 = 6
    FX_UNIT_3 = 7
    FX_UNIT_4 = 8


class InteractionMode(IntEnum):
    """Mapping interaction mode (CMAD). NONE is written as HOLD."""
    NONE = -1
    TOGGLE = 1
    HOLD = 2
    DIRECT = 3
    RELATIVE = 4
    INCREMENT = 5
    DECREMENT = 6
    RESET = 7
    OUTPUT = 8
    TRIGGER = 9


class ControllerType(IntEnum):
    """Controller type (CMAD). NONE is written as BUTTON."""
    NONE = -1
    BUTTON = 0
    FADER_OR_KNOB = 1
    ENCODER = 2
    LED = 65535


class MappingResolution(IntEnum):
    """
    Output resolution in the CMAD LED tail. Stored as a DWORD whose bits are
    the IEEE single for the step size; values outside this set are kept raw.
    """
    FINE = 0x3C800000
    DEFAULT = 0x3D800000
    COARSE = 0x3E000000
    SWITCH = 0x3F000000
