"""
Typing Pattern Analyzer - Statistics over a keystroke-interval window
"""

import math
import logging
from datetime import datetime
from typing import Sequence, Optional

import numpy as np

from ..models import TypingPattern

logger = logging.getLogger(__name__)

# Average characters per word used by the WPM approximation
CHARS_PER_WORD = 5


def round_half_up(value: float) -> int:
    """Round .5 upwards, matching the rounding of stored scores"""
    return int(math.floor(value + 0.5))


def variance(values: Sequence[float]) -> float:
    """
    Population variance of a sequence.

    Empty and single-element sequences have zero variance.
    """
    if len(values) < 2:
        return 0.0
    return float(np.var(np.asarray(values, dtype=float)))


class TypingPatternAnalyzer:
    """
    Builds TypingPattern snapshots from keystroke intervals.

    Speed is an interval-based approximation:

        average_speed = round(60000 / (mean_interval_ms * 5))

    which treats every five keystrokes as one word. It is not true WPM,
    but the grade threshold table is calibrated against it.
    """

    def __init__(self, pause_ms: int = 1000):
        """
        Args:
            pause_ms: Intervals longer than this are recorded as pauses
        """
        self.pause_ms = pause_ms

    def compute_wpm(self, intervals: Sequence[float]) -> int:
        """Approximate words per minute, 0 for an empty window"""
        if len(intervals) == 0:
            return 0
        mean_interval = float(np.mean(np.asarray(intervals, dtype=float)))
        if mean_interval <= 0:
            return 0
        return round_half_up(60000 / (mean_interval * CHARS_PER_WORD))

    def analyze(
        self,
        intervals: Sequence[float],
        backspace_frequency: int = 0,
        timestamp: Optional[str] = None
    ) -> TypingPattern:
        """
        Analyze a window of inter-keystroke intervals.

        Args:
            intervals: Milliseconds between consecutive keystrokes
            backspace_frequency: Supplied by the caller, not derived here
            timestamp: ISO timestamp for the snapshot (defaults to now)

        Returns:
            Immutable TypingPattern
        """
        window = [float(i) for i in intervals]
        pattern = TypingPattern(
            keystroke_intervals=window,
            average_speed=self.compute_wpm(window),
            pause_pattern=[i for i in window if i > self.pause_ms],
            backspace_frequency=backspace_frequency,
            timestamp=timestamp or datetime.utcnow().isoformat()
        )
        logger.debug(
            f"Typing pattern: {len(window)} intervals, speed={pattern.average_speed}, "
            f"pauses={len(pattern.pause_pattern)}"
        )
        return pattern
