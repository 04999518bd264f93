import pytest

from tsi_mapping.midi import (
    MidiControl,
    format_control_name,
    note_name_to_number,
    note_number_to_name,
    parse_control_name,
)


@pytest.mark.parametrize(
    "name, expected",
    [
        ("Ch01.CC.100", MidiControl(1, True, 100)),
        ("Ch07.CC.064", MidiControl(7, True, 64)),
        ("Ch09.Note.C2", MidiControl(9, False, 36)),
        ("Ch09.Note.A#2", MidiControl(9, False, 46)),
        ("Ch16.Note.G8", MidiControl(16, False, 115)),
        ("Ch05.Note.C#3", MidiControl(5, False, 49)),
        ("Ch02.Note.G-1", MidiControl(2, False, 7)),
    ],
)
def test_parse_control_name(name, expected):
    assert parse_control_name(name) == expected


@pytest.mark.parametrize(
    "note, number",
    [("C4", 60), ("A4", 69), ("C#2", 37), ("F#5", 78), ("B7", 107), ("C-1", 0), ("G9", 127), ("Bb2", 46)],
)
def test_note_name_to_number(note, number):
    assert note_name_to_number(note) == number


@pytest.mark.parametrize("note", ["X5", "H2", "C", "", "G#9", "C-2"])
def test_note_name_rejects_garbage_and_out_of_range(note):
    assert note_name_to_number(note) is None


def test_note_number_to_name_uses_sharps():
    assert note_number_to_name(46) == "A#2"
    assert note_number_to_name(0) == "C-1"
    with pytest.raises(ValueError):
        note_number_to_name(128)


@pytest.mark.parametrize(
    "name, expected",
    [
        ("InvalidName", MidiControl(1, False, None)),
        ("", MidiControl(1, False, None)),
        (None, MidiControl(1, False, None)),
        ("Ctrl_12", MidiControl(1, False, None)),
        ("Chxx.CC.010", MidiControl(1, True, 10)),
        ("Ch17.CC.010", MidiControl(1, True, 10)),
        ("Ch03.CC.abc", MidiControl(3, True, None)),
        ("Ch03.CC.200", MidiControl(3, True, None)),
        ("Ch03.Note.X5", MidiControl(3, False, None)),
        ("Ch03.Pitch.5", MidiControl(3, False, None)),
        ("Ch03.CC.1.2", MidiControl(3, False, None)),
    ],
)
def test_parse_control_name_degrades_gracefully(name, expected):
    assert parse_control_name(name) == expected


def test_format_control_name_examples():
    assert format_control_name(1, cc=100) == "Ch01.CC.100"
    assert format_control_name(1, cc=10) == "Ch01.CC.010"
    assert format_control_name(9, note=46) == "Ch09.Note.A#2"
    assert format_control_name(10, note=0) == "Ch10.Note.C-1"


@pytest.mark.parametrize(
    "kwargs",
    [dict(channel=1), dict(channel=1, cc=1, note=1), dict(channel=0, cc=1),
     dict(channel=17, note=1), dict(channel=1, cc=128), dict(channel=1, note=-1)],
)
def test_format_control_name_rejects_invalid(kwargs):
    with pytest.raises(ValueError):
        format_control_name(**kwargs)


def test_every_control_name_parses_back():
    for channel in range(1, 17):
        for value in range(128):
            assert parse_control_name(format_control_name(channel, cc=value)) == MidiControl(channel, True, value)
            assert parse_control_name(format_control_name(channel, note=value)) == MidiControl(channel, False, value)
