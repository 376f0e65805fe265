"""
Quiz Session Manager - Question/answer flows with automated feedback
"""

import logging
from datetime import datetime
from typing import Callable, List, Optional, Sequence

from .analysis import TypingPatternAnalyzer
from .feedback import FeedbackGenerator
from .models import AutomatedFeedback, QuizResponse, QuizSession, epoch_millis
from .scoring import IntegrityScorer
from .storage import PersistenceGateway
from .thresholds import IntegrityThresholds
from .utils.logging import log_integrity_event

logger = logging.getLogger(__name__)


class QuizSessionManager:
    """
    Manages quiz sessions stored in the "quiz_sessions" namespace.

    Unlike SessionManager this class holds no current-session pointer;
    every call names its quiz session explicitly.
    """

    # Integrity score below which a finished quiz is queued for review
    REVIEW_SCORE_THRESHOLD = 70

    def __init__(
        self,
        store: PersistenceGateway,
        thresholds: Optional[IntegrityThresholds] = None,
        analyzer: Optional[TypingPatternAnalyzer] = None,
        scorer: Optional[IntegrityScorer] = None,
        feedback_generator: Optional[FeedbackGenerator] = None,
        clock: Optional[Callable[[], datetime]] = None
    ):
        self.store = store
        self.thresholds = thresholds or IntegrityThresholds()
        self.analyzer = analyzer or TypingPatternAnalyzer(pause_ms=self.thresholds.pause_ms)
        self.scorer = scorer or IntegrityScorer(self.thresholds)
        self.feedback_generator = feedback_generator or FeedbackGenerator(thresholds=self.thresholds)
        self._clock = clock or datetime.utcnow

    async def _load(self, session_id: str) -> Optional[QuizSession]:
        try:
            data = await self.store.get(session_id)
        except Exception as e:
            logger.error(f"Failed to load quiz session {session_id}: {e}")
            return None
        if data is None:
            logger.warning(f"Unknown quiz session {session_id}")
            return None
        return QuizSession.from_dict(data)

    async def _save(self, session: QuizSession) -> bool:
        try:
            await self.store.set(session.id, session.to_dict())
            return True
        except Exception as e:
            logger.error(f"Failed to persist quiz session {session.id}: {e}")
            return False

    async def _key_taken(self, key: str) -> bool:
        try:
            return await self.store.get(key) is not None
        except Exception as e:
            logger.error(f"Failed to check quiz session key {key}: {e}")
            return False

    async def start_quiz_session(self, user_id: str, subject: str, grade: int) -> QuizSession:
        """
        Start a quiz session.

        Returns:
            New session with score 100 and no responses
        """
        now = self._clock()
        millis = epoch_millis(now)
        key = f"quiz_{user_id}_{millis}"
        while await self._key_taken(key):
            millis += 1
            key = f"quiz_{user_id}_{millis}"

        session = QuizSession(
            id=key,
            user_id=user_id,
            subject=subject,
            grade=grade,
            start_time=now.isoformat()
        )
        await self._save(session)
        log_integrity_event(session.id, "quiz_start", {"user_id": user_id, "grade": grade})
        return session

    async def get_quiz_session(self, session_id: str) -> Optional[QuizSession]:
        return await self._load(session_id)

    async def record_quiz_response(
        self,
        session_id: str,
        question_id: str,
        answer: str,
        time_spent: float,
        typing_intervals: Sequence[float],
        revisions: int
    ) -> List[AutomatedFeedback]:
        """
        Record an answer and generate feedback for it.

        Args:
            session_id: Quiz session ID
            question_id: Question answered
            answer: Answer text
            time_spent: Seconds spent on the question
            typing_intervals: Keystroke intervals (ms) while answering
            revisions: Number of times the answer was changed

        Returns:
            Feedback generated for this response only; empty when the
            session is unknown or could not be loaded or saved
        """
        session = await self._load(session_id)
        if session is None:
            return []

        intervals = list(typing_intervals or [])
        confidence = self.scorer.classify_confidence(intervals, revisions, time_spent)
        response = QuizResponse(
            question_id=question_id,
            answer=answer,
            time_spent=time_spent,
            typing_pattern=self.analyzer.analyze(
                intervals,
                backspace_frequency=revisions,
                timestamp=self._clock().isoformat()
            ),
            revision_count=revisions,
            confidence=confidence
        )
        session.responses.append(response)

        feedback = self.feedback_generator.generate_quiz_feedback(response, session.grade)
        session.feedback.extend(feedback)

        if not await self._save(session):
            return []
        logger.info(
            f"Quiz response recorded: session={session_id} question={question_id} "
            f"confidence={confidence.value} feedback={len(feedback)}"
        )
        return feedback

    async def end_quiz_session(
        self,
        session_id: str,
        overall_score: Optional[int] = None,
        integrity_score: Optional[int] = None
    ) -> Optional[QuizSession]:
        """
        Seal a quiz session and decide whether it needs review.

        Args:
            session_id: Quiz session ID
            overall_score: Correctness score from the grading collaborator
            integrity_score: Score of the activity session that monitored
                this quiz, if any

        Returns:
            The sealed session, or None if unknown
        """
        session = await self._load(session_id)
        if session is None:
            return None

        session.end_time = self._clock().isoformat()
        if overall_score is not None:
            session.overall_score = overall_score
        if integrity_score is not None:
            session.integrity_score = self.scorer.clamp(integrity_score)
        session.flagged_for_review = session.integrity_score < self.REVIEW_SCORE_THRESHOLD

        await self._save(session)
        log_integrity_event(
            session.id,
            "quiz_end",
            {
                "integrity_score": session.integrity_score,
                "responses": len(session.responses),
                "flagged": session.flagged_for_review
            }
        )
        return session
