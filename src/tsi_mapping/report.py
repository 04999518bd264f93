from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import List, Tuple

Issue = Tuple[str, str]  # (severity, message)

logger = logging.getLogger(__name__)


@dataclass
class DecodeReport:
    """
    What a decode pass recovered from. Pass one to the parser to collect it;
    nothing here is required for the decoded model to be usable.
    """
    issues: List[Issue] = field(default_factory=list)
    skipped_unassigned: int = 0
    skipped_malformed: int = 0
    unresolved_bindings: int = 0
    unknown_frames: List[str] = field(default_factory=list)
    dropped_frames: List[str] = field(default_factory=list)

    def warn(self, message: str) -> None:
        logger.warning(message)
        self.issues.append(("warn", message))

    def info(self, message: str) -> None:
        logger.debug(message)
        self.issues.append(("info", message))

    def malformed(self, message: str) -> None:
        self.skipped_malformed += 1
        self.warn(message)

    def unknown_frame(self, id4: str, where: str) -> None:
        self.unknown_frames.append(id4)
        self.warn(f"Unrecognised frame {id4!r} in {where}")

    def dropped_frame(self, id4: str, where: str) -> None:
        self.dropped_frames.append(id4)
        self.warn(f"Frame {id4!r} in {where} is not kept and will not be re-emitted")

    @property
    def clean(self) -> bool:
        return not any(sev == "warn" for sev, _ in self.issues)
