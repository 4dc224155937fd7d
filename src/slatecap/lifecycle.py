"""Take lifecycle: ACTION starts a take, CUT ends it.

Keyword handling is idempotent. A repeated "action" during a take and a
"cut" with no take running are both ignored.
"""

import logging
from dataclasses import dataclass
from enum import Enum

from slatecap.constants import CORRELATION_WINDOW_SECONDS
from slatecap.slate import PendingSlate, tokenize

logger = logging.getLogger(__name__)

START_KEYWORDS = frozenset({"action", "rolling", "turnover"})
STOP_KEYWORDS = frozenset({"cut"})


class TakeState(str, Enum):
    IDLE = "idle"
    ACTIVE = "active"


class TakeEvent(str, Enum):
    START = "start"
    STOP = "stop"


class AnnotationKind(str, Enum):
    SLATE = "slate"
    ACTION = "action"
    CUT = "cut"
    TRANSCRIPT = "transcript"


@dataclass(frozen=True)
class Annotation:
    """A record emitted to the UI: slate header, lifecycle marker or line."""

    kind: AnnotationKind
    text: str
    timestamp: float

    def to_dict(self) -> dict:
        return {"kind": self.kind.value, "text": self.text, "timestamp": self.timestamp}


def keyword_positions(text: str) -> tuple[int | None, int | None]:
    """Character offset of the first start and the first stop keyword."""
    start_pos = stop_pos = None
    for token in tokenize(text):
        if not token.is_word:
            continue
        if start_pos is None and token.text in START_KEYWORDS:
            start_pos = token.start
        elif stop_pos is None and token.text in STOP_KEYWORDS:
            stop_pos = token.start
    return start_pos, stop_pos


def order_events(start_pos: int | None, stop_pos: int | None) -> list[TakeEvent]:
    """Order keyword events by where they were spoken.

    "cut ... rolling" ends the running take before starting the next one.
    At the same offset START goes first.
    """
    found = []
    if start_pos is not None:
        found.append((start_pos, 0, TakeEvent.START))
    if stop_pos is not None:
        found.append((stop_pos, 1, TakeEvent.STOP))
    return [event for _, _, event in sorted(found)]


class TakeLifecycle:
    """Two-state machine over ACTION/CUT keywords with slate correlation."""

    def __init__(self, correlation_window: float = CORRELATION_WINDOW_SECONDS):
        """Initialize the lifecycle.

        Args:
            correlation_window: Maximum age in seconds of a pending slate for
                it to be announced with the ACTION call.
        """
        self.correlation_window = correlation_window
        self._state = TakeState.IDLE

    @property
    def state(self) -> TakeState:
        return self._state

    def reset(self) -> None:
        self._state = TakeState.IDLE

    def process(self, text: str, slate: PendingSlate, now: float) -> list[Annotation]:
        """Apply the keywords found in ``text`` in spoken order.

        Returns:
            Annotations produced, possibly empty.
        """
        annotations: list[Annotation] = []
        for event in order_events(*keyword_positions(text)):
            if event is TakeEvent.START:
                annotations.extend(self._start(slate, now))
            else:
                annotations.extend(self._stop(slate, now))
        return annotations

    def _start(self, slate: PendingSlate, now: float) -> list[Annotation]:
        if self._state is TakeState.ACTIVE:
            return []
        self._state = TakeState.ACTIVE

        annotations = []
        if not slate.is_empty:
            if self._is_fresh(slate, now):
                header = slate.header()
                annotations.append(Annotation(AnnotationKind.SLATE, header, now))
            else:
                logger.debug(f"Ignoring stale slate captured at {slate.captured_at}")
                slate.clear()
        annotations.append(Annotation(AnnotationKind.ACTION, "ACTION", now))
        logger.info(f"Take started: {annotations[0].text}")
        return annotations

    def _stop(self, slate: PendingSlate, now: float) -> list[Annotation]:
        if self._state is TakeState.IDLE:
            return []
        self._state = TakeState.IDLE
        slate.clear()
        logger.info("Take ended: CUT")
        return [Annotation(AnnotationKind.CUT, "CUT", now)]

    def _is_fresh(self, slate: PendingSlate, now: float) -> bool:
        if slate.captured_at is None:
            return False
        return now - slate.captured_at <= self.correlation_window
