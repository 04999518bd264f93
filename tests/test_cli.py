import csv
import json

import pytest

from tsi_mapping.cli import ROW_FIELDS, main, mapping_rows
from tsi_mapping.codec import decode, encode, read_tsi, write_tsi


@pytest.fixture
def tsi_path(tmp_path, sample_file):
    path = tmp_path / "sample.tsi"
    write_tsi(str(path), sample_file)
    return path


def test_mapping_rows(sample_file):
    rows = mapping_rows(sample_file)
    assert len(rows) == 6
    assert set(rows[0]) == set(ROW_FIELDS)
    assert rows[0]["midi_control"] == "Ch01.Note.C4"
    assert rows[0]["modifier1"] == "M2 = 1"
    assert rows[2]["encoder_mode"] == "MODE_3FH_41H"
    assert rows[4]["device_name"] == "FX Pads"


def test_dump_prints_json(tsi_path, capsys):
    assert main(["dump", str(tsi_path)]) == 0
    rows = json.loads(capsys.readouterr().out)
    assert [r["command_name"] for r in rows][:2] == ["Play/Pause", "Volume"]


def test_dump_writes_json_and_csv(tsi_path, tmp_path):
    out_json = tmp_path / "rows.json"
    out_csv = tmp_path / "rows.csv"
    assert main(["dump", str(tsi_path), "--json", str(out_json), "--csv", str(out_csv)]) == 0
    assert len(json.loads(out_json.read_text(encoding="utf-8"))) == 6
    with open(out_csv, newline="", encoding="utf-8") as f:
        rows = list(csv.DictReader(f))
    assert rows[5]["comment"] == "Ünïcødé ✓"


def test_dump_json_next_to_file(tsi_path):
    out = tsi_path.with_suffix(".json")
    assert main(["dump", str(tsi_path), "--json", str(out)]) == 0
    rows = json.loads(out.read_text(encoding="utf-8"))
    assert len(rows) == 6
    assert all(set(r) == set(ROW_FIELDS) for r in rows)
    assert rows[3]["io_type"] == "OUTPUT"

    mf = read_tsi(str(tsi_path))
    assert decode(encode(mf)) == mf
    assert encode(mf) == tsi_path.read_bytes()


def test_frames_prints_tree(tsi_path, capsys):
    assert main(["frames", str(tsi_path)]) == 0
    lines = capsys.readouterr().out.splitlines()
    assert lines[0].startswith("DIOM @0")
    assert any(line.startswith("  DEVS") for line in lines)
    assert any(line.strip().startswith("CMAD") for line in lines)


def test_rewrite(tsi_path, tmp_path, sample_file, capsys):
    out = tmp_path / "copy.tsi"
    assert main(["rewrite", str(tsi_path), str(out)]) == 0
    assert "2 devices, 6 mappings" in capsys.readouterr().out
    assert read_tsi(str(out)) == sample_file


def test_errors_return_nonzero(tmp_path, capsys):
    bad = tmp_path / "bad.tsi"
    bad.write_bytes(b"<NIXML/>")
    assert main(["dump", str(bad)]) == 1
    assert main(["dump", str(tmp_path / "missing.tsi")]) == 1
    assert "error:" in capsys.readouterr().err
