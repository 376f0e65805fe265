"""
Report Aggregator - Builds guardian-facing integrity reports from stored sessions
"""

import logging
from datetime import datetime, timedelta
from typing import Callable, List, Optional

from ..analysis import round_half_up
from ..models import ActivitySession, EventType, IntegrityReport, parse_timestamp
from ..storage import PersistenceGateway

logger = logging.getLogger(__name__)


class ReportAggregator:
    """
    Aggregates a learner's activity sessions over a reporting window.

    Sessions are matched by substring of the user ID in their storage key,
    so no user ID may be contained in another user ID in one deployment.
    Sessions that were never ended are included with their running score.
    """

    # A session is flagged below this score or with any suspicious event
    FLAG_SCORE_THRESHOLD = 80

    # Average-score bands for recommendations
    CONCERN_THRESHOLD = 70
    PRACTICE_THRESHOLD = 85

    RECOMMENDATIONS = {
        "concern": [
            "Consider discussing academic honesty and the importance of doing their own work",
            "Review completed assignments together to understand their thought process",
        ],
        "practice": [
            "Encourage taking time to think through problems carefully",
            "Practice typing skills to improve natural typing patterns",
        ],
        "environment": [
            "Create a distraction-free environment for schoolwork",
            "Consider shorter work sessions with planned breaks",
        ],
        "positive": [
            "Great job maintaining academic integrity!",
            "Continue encouraging independent thinking and learning",
        ],
    }

    def __init__(self, store: PersistenceGateway, clock: Optional[Callable[[], datetime]] = None):
        """
        Args:
            store: Gateway for the "sessions" namespace
            clock: Returns the current naive UTC datetime
        """
        self.store = store
        self._clock = clock or datetime.utcnow

    async def load_user_sessions(self, user_id: str, start: datetime, end: datetime) -> List[ActivitySession]:
        """Load a user's sessions that started inside [start, end]"""
        sessions = []
        for key in await self.store.keys():
            if user_id not in key:
                continue
            data = await self.store.get(key)
            if data is None:
                continue
            session = ActivitySession.from_dict(data)
            started = parse_timestamp(session.start_time)
            if start <= started <= end:
                sessions.append(session)
        return sessions

    async def generate_integrity_report(self, user_id: str, days: int = 7) -> IntegrityReport:
        """
        Generate an integrity report.

        Args:
            user_id: Learner ID
            days: Length of the reporting window ending now

        Returns:
            IntegrityReport; a safe all-clear report if storage fails
        """
        end = self._clock()
        start = end - timedelta(days=days)

        try:
            sessions = await self.load_user_sessions(user_id, start, end)
        except Exception as e:
            logger.error(f"Error generating integrity report for {user_id}: {e}")
            return IntegrityReport(
                user_id=user_id,
                period_start=end.isoformat(),
                period_end=end.isoformat()
            )

        flagged = [
            s for s in sessions
            if s.integrity_score < self.FLAG_SCORE_THRESHOLD or s.suspicious_events
        ]
        all_events = [e for s in sessions for e in s.suspicious_events]
        false_positives = sum(1 for e in all_events if e.false_positive)

        if sessions:
            average = sum(s.integrity_score for s in sessions) / len(sessions)
        else:
            average = 100.0

        false_positive_rate = (false_positives / len(all_events)) * 100 if all_events else 0.0

        report = IntegrityReport(
            user_id=user_id,
            period_start=start.isoformat(),
            period_end=end.isoformat(),
            total_sessions=len(sessions),
            average_integrity_score=round_half_up(average),
            suspicious_events_count=len(all_events),
            flagged_sessions=flagged,
            recommendations=self.generate_recommendations(sessions, average),
            false_positive_rate=false_positive_rate
        )

        logger.info(
            f"Integrity report for {user_id}: sessions={report.total_sessions} "
            f"avg={report.average_integrity_score} flagged={len(flagged)}"
        )
        return report

    def generate_recommendations(self, sessions: List[ActivitySession], average_score: float) -> List[str]:
        """Rule-based guardian recommendations keyed off the average score"""
        recommendations = []

        if average_score < self.CONCERN_THRESHOLD:
            recommendations.extend(self.RECOMMENDATIONS["concern"])

        if average_score < self.PRACTICE_THRESHOLD:
            recommendations.extend(self.RECOMMENDATIONS["practice"])

        has_time_gaps = any(
            event.type == EventType.TIME_GAP
            for session in sessions
            for event in session.suspicious_events
        )
        if has_time_gaps:
            recommendations.extend(self.RECOMMENDATIONS["environment"])

        if not recommendations:
            recommendations.extend(self.RECOMMENDATIONS["positive"])

        return recommendations
