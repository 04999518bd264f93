from __future__ import annotations

import re
from typing import NamedTuple, Optional

# e.g. F4, C#3, G-1 (Traktor often uses negative octaves)
_NOTE_NAME_RE = re.compile(r"^([A-G])([#b])?(-?\d+)$")

NOTE_NAMES = ("C", "C#", "D", "D#", "E", "F", "F#", "G", "G#", "A", "A#", "B")

# Semitone map relative to C; flats are only ever read, never written
_SEMITONE = {
    "C": 0, "C#": 1, "Db": 1,
    "D": 2, "D#": 3, "Eb": 3,
    "E": 4,
    "F": 5, "F#": 6, "Gb": 6,
    "G": 7, "G#": 8, "Ab": 8,
    "A": 9, "A#": 10, "Bb": 10,
    "B": 11,
}


class MidiControl(NamedTuple):
    channel: int            # 1..16
    is_cc: bool
    number: Optional[int]   # 0..127, None when unparseable


def note_name_to_number(note_name: str) -> Optional[int]:
    """
    Convert musical note like 'F4', 'C#3', 'G-1' to a MIDI number using C-1 = 0.
    Formula: number = (octave + 1) * 12 + semitone
    """
    m = _NOTE_NAME_RE.match(note_name.strip())
    if not m:
        return None
    key = m.group(1) + (m.group(2) or "")
    if key not in _SEMITONE:
        return None
    number = (int(m.group(3)) + 1) * 12 + _SEMITONE[key]
    return number if 0 <= number <= 127 else None


def note_number_to_name(number: int) -> str:
    """60 -> 'C4', 0 -> 'C-1'. Always sharps."""
    if not 0 <= number <= 127:
        raise ValueError(f"MIDI note out of range: {number}")
    return f"{NOTE_NAMES[number % 12]}{number // 12 - 1}"


def _parse_channel(head: str) -> int:
    if not head.startswith("Ch"):
        return 1
    try:
        ch = int(head[2:])
    except ValueError:
        return 1
    return ch if 1 <= ch <= 16 else 1


def parse_control_name(name: Optional[str]) -> MidiControl:
    """
    Parses binding strings like:
        "Ch07.CC.064"   -> MidiControl(7, True, 64)
        "Ch05.Note.C#3" -> MidiControl(5, False, 49)
        "Ctrl_12"       -> MidiControl(1, False, None)

    A garbled channel falls back to 1 instead of failing the whole control.
    """
    if not name:
        return MidiControl(1, False, None)

    parts = name.split(".")
    channel = _parse_channel(parts[0])
    if len(parts) != 3:
        return MidiControl(channel, False, None)

    event, tail = parts[1], parts[2].strip()
    if event == "CC":
        try:
            number = int(tail)
        except ValueError:
            return MidiControl(channel, True, None)
        return MidiControl(channel, True, number if 0 <= number <= 127 else None)

    if event == "Note":
        return MidiControl(channel, False, note_name_to_number(tail))

    return MidiControl(channel, False, None)


def format_control_name(channel: int, cc: Optional[int] = None, note: Optional[int] = None) -> str:
    """Inverse of parse_control_name: 'Ch01.CC.100', 'Ch09.Note.A#2'."""
    if cc is not None and note is not None:
        raise ValueError("A control is either a CC or a note, not both")
    if not 1 <= channel <= 16:
        raise ValueError(f"MIDI channel out of range: {channel}")
    if cc is not None:
        if not 0 <= cc <= 127:
            raise ValueError(f"MIDI CC out of range: {cc}")
        return f"Ch{channel:02d}.CC.{cc:03d}"
    if note is not None:
        return f"Ch{channel:02d}.Note.{note_number_to_name(note)}"
    raise ValueError("Neither CC nor note given")
