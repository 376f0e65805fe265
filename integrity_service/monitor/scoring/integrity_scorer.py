"""
Integrity Scorer - Computes integrity score from suspicious events and typing patterns
"""

import logging
from typing import Dict, Any, Optional, Sequence

from ..analysis import variance, round_half_up
from ..models import ActivitySession, Confidence, Severity, SuspiciousEvent, TypingPattern
from ..thresholds import IntegrityThresholds

logger = logging.getLogger(__name__)


class IntegrityScorer:
    """
    Computes a session's integrity score.

    Formula (final):
        integrity_score = 100
            - sum(penalty(event) for events not marked false positive)
            + min(10, 2 * natural_patterns)

    Penalties: low=5, medium=15, high=30. A pattern is "natural" when
    5 < speed < 60 and its interval variance is above 50. The result
    is clamped to 0-100.
    """

    MAX_SCORE = 100
    MIN_SCORE = 0

    def __init__(self, thresholds: Optional[IntegrityThresholds] = None):
        """
        Initialize scorer with optional custom thresholds.

        Args:
            thresholds: Optional IntegrityThresholds overriding defaults
        """
        self.thresholds = thresholds or IntegrityThresholds()

    def clamp(self, score: float) -> int:
        return max(self.MIN_SCORE, min(self.MAX_SCORE, round_half_up(score)))

    def penalty(self, severity: Severity) -> int:
        """Score penalty for an event severity"""
        return self.thresholds.penalty(severity)

    def apply_event(self, current_score: int, event: SuspiciousEvent) -> int:
        """
        Update a running score with a newly flagged event.

        Args:
            current_score: Score before the event
            event: Event just recorded

        Returns:
            Score after the penalty, never below 0
        """
        if event.false_positive:
            return self.clamp(current_score)
        score = self.clamp(current_score - self.penalty(event.severity))
        logger.debug(f"Event {event.type.value} ({event.severity.value}): {current_score} -> {score}")
        return score

    def is_natural(self, pattern: TypingPattern) -> bool:
        """Whether a pattern looks like ordinary human typing"""
        t = self.thresholds
        return (
            t.natural_min_speed < pattern.average_speed < t.natural_max_speed
            and variance(pattern.keystroke_intervals) > t.natural_min_variance
        )

    def compute(
        self,
        events: Sequence[SuspiciousEvent],
        patterns: Sequence[TypingPattern]
    ) -> int:
        """
        Compute the integrity score from the full event log.

        Args:
            events: All suspicious events of a session
            patterns: All typing patterns of a session

        Returns:
            Integrity score (0-100, higher is better)
        """
        return self.compute_breakdown(events, patterns)["integrity_score"]

    def compute_breakdown(
        self,
        events: Sequence[SuspiciousEvent],
        patterns: Sequence[TypingPattern]
    ) -> Dict[str, Any]:
        """
        Compute integrity score with detailed breakdown.

        Returns:
            Dict with score, total penalty, bonus and pattern counts
        """
        total_penalty = sum(
            self.penalty(event.severity) for event in events if not event.false_positive
        )
        natural = sum(1 for pattern in patterns if self.is_natural(pattern))
        bonus = min(self.thresholds.max_bonus, natural * self.thresholds.bonus_per_pattern)
        raw = self.MAX_SCORE - total_penalty + bonus

        return {
            "integrity_score": self.clamp(raw),
            "raw_score": raw,
            "total_penalty": total_penalty,
            "bonus": bonus,
            "natural_patterns": natural,
            "counted_events": sum(1 for e in events if not e.false_positive)
        }

    def finalize(self, session: ActivitySession) -> int:
        """
        Final score for a session, recomputed from its event log.

        The running score kept during the session is ignored so that
        false-positive corrections and pattern bonuses are applied once.
        """
        score = self.compute(session.suspicious_events, session.typing_patterns)
        logger.info(f"Final integrity score for {session.id}: {score}")
        return score

    def classify_confidence(
        self,
        intervals: Sequence[float],
        revisions: int,
        time_spent: float
    ) -> Confidence:
        """
        Classify how deliberated a quiz answer appears.

        Only affects feedback tone, never the score.

        Args:
            intervals: Keystroke intervals in ms for the answer
            revisions: Number of times the answer was changed
            time_spent: Seconds spent on the question
        """
        t = self.thresholds
        has_long_pauses = any(i > t.confidence_long_pause_ms for i in intervals)

        if time_spent < t.confidence_quick_seconds and revisions == 0 and not has_long_pauses:
            return Confidence.LOW

        if has_long_pauses or revisions > t.confidence_many_revisions or time_spent > t.confidence_slow_seconds:
            return Confidence.HIGH

        return Confidence.MEDIUM

    def get_status(self, score: int) -> str:
        """
        Convert score to a dashboard status band.

        Returns:
            'success' (90+), 'warning' (75-89) or 'danger'
        """
        if score >= 90:
            return "success"
        elif score >= 75:
            return "warning"
        else:
            return "danger"
