"""Routes transcript events through slate extraction and the take lifecycle.

One router holds the slate and take state of one recording session.
"""

import logging
import time
from collections.abc import Callable
from dataclasses import dataclass
from typing import Any

from slatecap.constants import CORRELATION_WINDOW_SECONDS
from slatecap.lifecycle import Annotation, AnnotationKind, TakeLifecycle, TakeState
from slatecap.slate import PendingSlate, SlateExtractor

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class TranscriptEvent:
    """A transcript update from the transcription channel."""

    text: str
    is_final: bool = True
    timestamp: float | None = None

    @classmethod
    def from_dict(cls, data: Any) -> "TranscriptEvent | None":
        """Build an event from loosely shaped JSON data.

        Missing or mistyped fields fall back to defaults; anything that is
        not a mapping yields None.
        """
        if not isinstance(data, dict):
            return None
        text = data.get("text")
        is_final = data.get("is_final", data.get("isFinal", True))
        timestamp = data.get("timestamp")
        return cls(
            text=text if isinstance(text, str) else "",
            is_final=is_final if isinstance(is_final, bool) else True,
            timestamp=(
                float(timestamp)
                if isinstance(timestamp, (int, float)) and not isinstance(timestamp, bool)
                else None
            ),
        )


class TranscriptRouter:
    """Feeds transcript events to the slate extractor and the take lifecycle."""

    def __init__(
        self,
        correlation_window: float = CORRELATION_WINDOW_SECONDS,
        clock: Callable[[], float] = time.monotonic,
        final_only: bool = True,
        on_annotation: Callable[[Annotation], None] | None = None,
    ):
        """Initialize the router.

        Args:
            correlation_window: Maximum slate age in seconds at ACTION.
            clock: Time source for events without a timestamp.
            final_only: Ignore partial (non-final) transcript events.
            on_annotation: Called with each annotation as it is produced.
        """
        self._clock = clock
        self._final_only = final_only
        self._on_annotation = on_annotation
        self.slate = PendingSlate()
        self.extractor = SlateExtractor()
        self.lifecycle = TakeLifecycle(correlation_window)
        self.annotations: list[Annotation] = []

    @property
    def take_state(self) -> TakeState:
        return self.lifecycle.state

    def route(self, event: TranscriptEvent) -> list[Annotation]:
        """Process one transcript event.

        Returns:
            The transcript line followed by any slate/lifecycle annotations.
        """
        if self._final_only and not event.is_final:
            return []
        text = event.text.strip()
        if not text:
            return []

        now = event.timestamp if event.timestamp is not None else self._clock()
        produced = [Annotation(AnnotationKind.TRANSCRIPT, text, now)]
        try:
            self.extractor.extract(text, self.slate, now)
        except Exception:
            logger.exception(f"Failed to extract slate from {text!r}")
        try:
            produced.extend(self.lifecycle.process(text, self.slate, now))
        except Exception:
            logger.exception(f"Failed to track take state for {text!r}")

        for annotation in produced:
            self._emit(annotation)
        return produced

    def reset(self) -> None:
        """Forget the pending slate, the take state and the history."""
        self.slate.clear()
        self.lifecycle.reset()
        self.annotations.clear()

    def _emit(self, annotation: Annotation) -> None:
        self.annotations.append(annotation)
        if self._on_annotation is None:
            return
        try:
            self._on_annotation(annotation)
        except Exception:
            logger.exception("Annotation callback failed")
