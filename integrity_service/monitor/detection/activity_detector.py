"""
Suspicious Activity Detector - Grade-calibrated rules over typing, paste and inactivity
"""

import uuid
import logging
from datetime import datetime
from typing import List, Optional, Sequence

from ..analysis import variance, round_half_up
from ..models import EventType, Severity, SuspiciousEvent, TypingPattern, epoch_millis
from ..thresholds import IntegrityThresholds

logger = logging.getLogger(__name__)


def new_event_id(now: Optional[datetime] = None) -> str:
    """Event id in the form event_<epoch_ms>_<random>"""
    moment = now or datetime.utcnow()
    return f"event_{epoch_millis(moment)}_{uuid.uuid4().hex[:9]}"


class SuspiciousActivityDetector:
    """
    Stateless rule engine.

    Each check returns candidate SuspiciousEvents; recording them on a
    session and adjusting the score is left to the caller.

    Rules:
        unusual_speed (high)    speed > max_wpm * 1.5
        pattern_break (medium)  variance < 10 and speed > 20
        pattern_break (medium)  |speed[-1] - speed[-3]| > max_wpm * 0.8
        rapid_paste             > 50 chars in < 2s, high above 200 chars
        time_gap                > 5 min medium, > 15 min high
    """

    def __init__(self, thresholds: Optional[IntegrityThresholds] = None):
        self.thresholds = thresholds or IntegrityThresholds()

    def _event(
        self,
        event_type: EventType,
        severity: Severity,
        description: str,
        context: str,
        now: Optional[datetime] = None
    ) -> SuspiciousEvent:
        moment = now or datetime.utcnow()
        return SuspiciousEvent(
            id=new_event_id(moment),
            timestamp=moment.isoformat(),
            type=event_type,
            severity=severity,
            description=description,
            context=context
        )

    def check_typing(
        self,
        pattern: TypingPattern,
        history: Sequence[TypingPattern],
        grade: Optional[int] = None,
        now: Optional[datetime] = None
    ) -> List[SuspiciousEvent]:
        """
        Run the typing rules against a new pattern.

        Args:
            pattern: Pattern just produced by the analyzer
            history: All patterns of the session, including `pattern`
            grade: Learner grade (unknown grades use the fallback row)

        Returns:
            Events triggered, possibly empty
        """
        limits = self.thresholds.for_grade(grade)
        shown_grade = grade if grade in self.thresholds.grades else self.thresholds.fallback_grade
        events = []

        if pattern.average_speed > limits.max_wpm * self.thresholds.speed_multiplier:
            events.append(self._event(
                EventType.UNUSUAL_SPEED,
                Severity.HIGH,
                f"Typing speed ({pattern.average_speed} WPM) unusually high for grade {shown_grade}",
                f"Expected range: {limits.min_wpm}-{limits.max_wpm} WPM",
                now
            ))

        interval_variance = variance(pattern.keystroke_intervals)
        if (interval_variance < self.thresholds.low_variance_limit
                and pattern.average_speed > self.thresholds.low_variance_min_speed):
            events.append(self._event(
                EventType.PATTERN_BREAK,
                Severity.MEDIUM,
                "Typing pattern unusually consistent (possible copy-paste or auto-typing)",
                f"Interval variance: {interval_variance:.2f}ms",
                now
            ))

        window = self.thresholds.speed_shift_window
        recent = list(history)[-window:]
        if len(recent) >= window:
            first, last = recent[0].average_speed, recent[-1].average_speed
            if abs(last - first) > limits.max_wpm * self.thresholds.speed_shift_ratio:
                events.append(self._event(
                    EventType.PATTERN_BREAK,
                    Severity.MEDIUM,
                    "Sudden change in typing speed pattern",
                    f"Speed changed from {first} to {last} WPM",
                    now
                ))

        for event in events:
            logger.info(f"Typing rule triggered: {event.type.value} ({event.severity.value})")
        return events

    def check_paste(
        self,
        pasted_length: int,
        time_spent_ms: float,
        now: Optional[datetime] = None
    ) -> Optional[SuspiciousEvent]:
        """Flag a large paste that happened quickly"""
        t = self.thresholds
        if pasted_length > t.paste_min_length and time_spent_ms < t.paste_max_ms:
            severity = Severity.HIGH if pasted_length > t.paste_high_length else Severity.MEDIUM
            logger.info(f"Paste rule triggered: {pasted_length} chars in {time_spent_ms}ms ({severity.value})")
            return self._event(
                EventType.RAPID_PASTE,
                severity,
                f"Large text pasted quickly ({pasted_length} characters in {time_spent_ms:g}ms)",
                "Possible external source copying",
                now
            )
        return None

    def check_inactivity(
        self,
        gap_ms: float,
        now: Optional[datetime] = None
    ) -> Optional[SuspiciousEvent]:
        """Flag an extended inactivity period"""
        t = self.thresholds
        if gap_ms > t.gap_medium_ms:
            severity = Severity.HIGH if gap_ms > t.gap_high_ms else Severity.MEDIUM
            minutes = round_half_up(gap_ms / 60000)
            logger.info(f"Inactivity rule triggered: {minutes} min ({severity.value})")
            return self._event(
                EventType.TIME_GAP,
                severity,
                f"Extended inactivity period ({minutes} minutes)",
                "Possible external consultation or distraction",
                now
            )
        return None
