from __future__ import annotations

from dataclasses import dataclass


@dataclass(frozen=True)
class Limits:
    """
    Sanity bounds applied while decoding. A declared length at or above one of
    these is treated as corruption, not as a request to allocate.
    """
    max_wstring_chars: int = 10_000
    max_binding_chunk: int = 500      # DCBM payload bytes
    max_binding_chars: int = 200      # DCBM descriptor code units
    max_definition_chunk: int = 500   # DCDT payload bytes
    max_comment_chars: int = 1_000    # CMAD comment code units


DEFAULT_LIMITS = Limits()
