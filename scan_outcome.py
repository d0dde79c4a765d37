# scan_outcome.py
from enum import Enum
from typing import Any, Optional
from dataclasses import dataclass


class SkipReason(str, Enum):
    UNREADABLE = "unreadable"              # IO or decoding failure
    MISSING_FIELDS = "missing_fields"      # name / appid / installdir empty
    NON_GAME = "non_game"                  # redistributables and similar tools
    KNOWN_TITLE = "known_title"            # already found in the store pass
    EXCLUDED_LAUNCHER = "excluded_launcher"
    NOT_RELEVANT = "not_relevant"          # no allow-list fragment in the title


@dataclass(frozen=True)
class ScanOutcome:
    """Result for one scanned item: either a value or the reason it was dropped."""
    source: str
    value: Any = None
    reason: Optional[SkipReason] = None
    detail: str = ""

    @property
    def ok(self) -> bool:
        return self.reason is None

    @classmethod
    def accepted(cls, source: str, value: Any) -> 'ScanOutcome':
        return cls(source=source, value=value)

    @classmethod
    def skipped(cls, source: str, reason: SkipReason, detail: str = "") -> 'ScanOutcome':
        return cls(source=source, reason=reason, detail=detail)
