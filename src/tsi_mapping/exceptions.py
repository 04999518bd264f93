from __future__ import annotations

from typing import List, Optional, Tuple


class TsiError(Exception):
    """Base exception for TSI decoding/encoding errors."""


class EnvelopeError(TsiError):
    """The XML wrapper or its Base64 payload is malformed."""


class XmlEntryNotFound(EnvelopeError):
    """DeviceIO.Config.Controller not found in TSI XML."""


class FrameError(TsiError):
    """Invalid or malformed frame encountered."""

    def __init__(self, message: str, offset: Optional[int] = None, identifier: Optional[str] = None) -> None:
        context = []
        if identifier:
            context.append(f"frame {identifier!r}")
        if offset is not None:
            context.append(f"offset {offset}")
        if context:
            message = f"{message} ({', '.join(context)})"
        super().__init__(message)
        self.offset = offset
        self.identifier = identifier


class EncodeError(TsiError):
    """The mapping model breaks a model rule and cannot be written."""

    def __init__(self, issues: List[Tuple[str, str]]) -> None:
        errors = [msg for sev, msg in issues if sev == "error"]
        head = errors[0] if errors else "invalid mapping model"
        more = f" (+{len(errors) - 1} more)" if len(errors) > 1 else ""
        super().__init__(f"Refusing to encode: {head}{more}")
        self.issues = issues
