"""
Integrity Thresholds - Grade-calibrated detection limits and score penalties

All numeric tuning for detection and scoring lives here so it can be
injected into the detector and scorer instead of being edited in place.
"""

import logging
from dataclasses import dataclass, field
from typing import Dict, Optional

from .models import Severity

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class GradeThresholds:
    """Expected typing-speed bounds for one grade"""
    min_wpm: int
    max_wpm: int
    normal_pause_ms: int


# Speeds use the interval-based WPM approximation from the typing analyzer.
DEFAULT_GRADE_THRESHOLDS: Dict[int, GradeThresholds] = {
    3: GradeThresholds(min_wpm=5, max_wpm=25, normal_pause_ms=2000),
    4: GradeThresholds(min_wpm=8, max_wpm=35, normal_pause_ms=1800),
    5: GradeThresholds(min_wpm=12, max_wpm=45, normal_pause_ms=1500),
    6: GradeThresholds(min_wpm=15, max_wpm=55, normal_pause_ms=1200),
}

DEFAULT_SEVERITY_PENALTIES: Dict[Severity, int] = {
    Severity.LOW: 5,
    Severity.MEDIUM: 15,
    Severity.HIGH: 30,
}


@dataclass
class IntegrityThresholds:
    """
    Detection and scoring configuration.

    Attributes:
        grades: Per-grade speed table (grades 3-6)
        penalties: Score penalty per event severity
        fallback_grade: Row used for grades missing from the table
    """

    grades: Dict[int, GradeThresholds] = field(
        default_factory=lambda: dict(DEFAULT_GRADE_THRESHOLDS)
    )
    penalties: Dict[Severity, int] = field(
        default_factory=lambda: dict(DEFAULT_SEVERITY_PENALTIES)
    )
    fallback_grade: int = 4

    # Typing rules
    speed_multiplier: float = 1.5       # unusual_speed above max_wpm * 1.5
    low_variance_limit: float = 10.0    # metronomic timing below this variance
    low_variance_min_speed: int = 20
    speed_shift_ratio: float = 0.8      # sudden shift above max_wpm * 0.8
    speed_shift_window: int = 3
    pause_ms: int = 1000                # intervals counted as pauses

    # Paste rule
    paste_min_length: int = 50
    paste_max_ms: int = 2000
    paste_high_length: int = 200

    # Inactivity rule
    gap_medium_ms: int = 300_000        # 5 minutes
    gap_high_ms: int = 900_000          # 15 minutes

    # Final-score bonus for natural typing
    natural_min_speed: int = 5
    natural_max_speed: int = 60
    natural_min_variance: float = 50.0
    bonus_per_pattern: int = 2
    max_bonus: int = 10

    # Quiz response confidence
    confidence_quick_seconds: float = 15
    confidence_slow_seconds: float = 60
    confidence_long_pause_ms: int = 3000
    confidence_many_revisions: int = 3

    # Quiz feedback cutoffs
    feedback_quick_seconds: float = 10
    feedback_long_seconds: float = 300
    feedback_many_revisions: int = 5
    feedback_long_answer_chars: int = 20

    def __post_init__(self):
        ordered = [self.grades[g] for g in sorted(self.grades)]
        for lower, upper in zip(ordered, ordered[1:]):
            if upper.min_wpm < lower.min_wpm or upper.max_wpm < lower.max_wpm:
                logger.warning("Grade thresholds are not monotonic by grade")
                break

    def for_grade(self, grade: Optional[int]) -> GradeThresholds:
        """Get the speed bounds for a grade, falling back to the default row"""
        if grade in self.grades:
            return self.grades[grade]
        return self.grades[self.fallback_grade]

    def penalty(self, severity: Severity) -> int:
        """Get the score penalty for an event severity"""
        return self.penalties[Severity(severity)]
