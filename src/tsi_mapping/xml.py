from __future__ import annotations

import base64
import binascii
import logging
import re
from xml.etree import ElementTree as ET
from xml.sax.saxutils import quoteattr

from .exceptions import EnvelopeError, XmlEntryNotFound

logger = logging.getLogger(__name__)

CONTROLLER_ENTRY = "DeviceIO.Config.Controller"

_WS_RE = re.compile(r"\s+")


def unwrap_envelope(document: bytes) -> bytes:
    """
    Extracts and base64-decodes the controller mapping blob from .tsi XML.

    Looks for <Entry Name="DeviceIO.Config.Controller" Type="3" Value="..."/>.
    """
    try:
        root = ET.fromstring(document)
    except ET.ParseError as e:
        raise EnvelopeError(f"TSI document is not valid XML: {e}") from e

    for e in root.iter("Entry"):
        if e.attrib.get("Name") != CONTROLLER_ENTRY:
            continue
        b64 = _WS_RE.sub("", e.attrib.get("Value", ""))
        if not b64:
            break
        try:
            blob = base64.b64decode(b64, validate=True)
        except (binascii.Error, ValueError) as exc:
            raise EnvelopeError(f"{CONTROLLER_ENTRY} value is not valid Base64: {exc}") from exc
        logger.debug("Unwrapped %d byte controller blob", len(blob))
        return blob
    raise XmlEntryNotFound(f"{CONTROLLER_ENTRY} not found in TSI XML.")


def wrap_envelope(blob: bytes) -> bytes:
    value = base64.b64encode(blob).decode("ascii")
    doc = (
        '<?xml version="1.0" encoding="UTF-8" standalone="no" ?>\n'
        f'<NIXML><TraktorSettings><Entry Name="{CONTROLLER_ENTRY}" Type="3" Value={quoteattr(value)}/>'
        "</TraktorSettings></NIXML>\n"
    )
    return doc.encode("utf-8")


def extract_mapping_blob(tsi_path: str) -> bytes:
    """Reads a .tsi file and returns its decoded controller blob."""
    with open(tsi_path, "rb") as f:
        return unwrap_envelope(f.read())
