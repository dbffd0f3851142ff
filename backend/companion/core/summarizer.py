# backend/companion/core/summarizer.py
from __future__ import annotations
import logging
from enum import Enum
from typing import Callable, List, Optional

from companion.core.clock import now_ms
from companion.errors import EmptyInput, SummaryUnavailable
from companion.schemas import Note
from companion.services.media import MediaCollaborator, MediaServiceError

logger = logging.getLogger(__name__)

DAY_MS = 24 * 60 * 60 * 1000
MONTH_MS = 30 * DAY_MS


class SummaryRange(str, Enum):
    LAST_SESSION = "last_session"
    LAST_MONTH = "last_month"
    THREE_MONTHS = "3_months"
    ALL = "all"

    @property
    def label(self) -> str:
        return _LABELS[self]

    @classmethod
    def parse(cls, raw: str) -> "SummaryRange":
        """'Last Session', 'last_session', 'last session', 'All Time' 모두 받는다."""
        key = " ".join((raw or "").strip().lower().replace("_", " ").split())
        try:
            return _ALIASES[key]
        except KeyError:
            raise ValueError(f"unknown summary range: {raw!r}") from None


_LABELS = {
    SummaryRange.LAST_SESSION: "Last Session",
    SummaryRange.LAST_MONTH: "Last Month",
    SummaryRange.THREE_MONTHS: "3 Months",
    SummaryRange.ALL: "All Time",
}
_ALIASES = {
    "last session": SummaryRange.LAST_SESSION,
    "last month": SummaryRange.LAST_MONTH,
    "3 months": SummaryRange.THREE_MONTHS,
    "three months": SummaryRange.THREE_MONTHS,
    "all": SummaryRange.ALL,
    "all time": SummaryRange.ALL,
}


def select_notes(notes: List[Note], summary_range: SummaryRange, now: int) -> List[Note]:
    if summary_range is SummaryRange.LAST_SESSION:
        return notes[:1]
    if summary_range is SummaryRange.LAST_MONTH:
        return [n for n in notes if now - n.timestamp < MONTH_MS]
    if summary_range is SummaryRange.THREE_MONTHS:
        return [n for n in notes if now - n.timestamp < 3 * MONTH_MS]
    return list(notes)


class HistorySummarizer:
    def __init__(self, media: MediaCollaborator, clock: Callable[[], int] = now_ms):
        self._media = media
        self._clock = clock

    def now(self) -> int:
        return self._clock()

    async def summarize(self, notes: List[Note], range_label: str, now: Optional[int] = None) -> str:
        if not notes:
            raise EmptyInput()
        summary_range = SummaryRange.parse(range_label)
        selected = select_notes(notes, summary_range, self._clock() if now is None else now)
        try:
            return await self._media.summarize(selected, summary_range.label)
        except MediaServiceError as e:
            logger.warning("[summarizer] summary for %s unavailable: %s", summary_range.value, e)
            raise SummaryUnavailable() from e
