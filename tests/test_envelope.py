import base64

import pytest

from tsi_mapping.exceptions import EnvelopeError, XmlEntryNotFound
from tsi_mapping.xml import CONTROLLER_ENTRY, extract_mapping_blob, unwrap_envelope, wrap_envelope


def _doc(value: str, name: str = CONTROLLER_ENTRY) -> bytes:
    return (
        '<?xml version="1.0" encoding="UTF-8"?><NIXML><TraktorSettings>'
        f'<Entry Name="Browser.Dir.Root" Type="3" Value="x"/>'
        f'<Entry Name="{name}" Type="3" Value="{value}"/>'
        "</TraktorSettings></NIXML>"
    ).encode("utf-8")


def test_wrap_then_unwrap():
    blob = bytes(range(256))
    doc = wrap_envelope(blob)
    assert doc.startswith(b'<?xml version="1.0" encoding="UTF-8" standalone="no" ?>')
    assert unwrap_envelope(doc) == blob


def test_whitespace_inside_base64_is_ignored():
    encoded = base64.b64encode(b"DIOM\x00\x00\x00\x00").decode()
    assert unwrap_envelope(_doc(encoded[:4] + "&#10;  " + encoded[4:])) == b"DIOM\x00\x00\x00\x00"


def test_other_entries_are_ignored():
    assert unwrap_envelope(_doc(base64.b64encode(b"abc").decode())) == b"abc"


def test_invalid_xml():
    with pytest.raises(EnvelopeError):
        unwrap_envelope(b"<NIXML><Entry")


@pytest.mark.parametrize("doc", [_doc("QUJD", name="Other.Entry"), _doc("")])
def test_missing_controller_entry(doc):
    with pytest.raises(XmlEntryNotFound):
        unwrap_envelope(doc)


def test_invalid_base64():
    with pytest.raises(EnvelopeError):
        unwrap_envelope(_doc("not*base64!"))


def test_extract_mapping_blob(tmp_path):
    path = tmp_path / "m.tsi"
    path.write_bytes(wrap_envelope(b"\x01\x02\x03"))
    assert extract_mapping_blob(str(path)) == b"\x01\x02\x03"
