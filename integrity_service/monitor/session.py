"""
Session Manager - Manages the monitored activity session of one learner
"""

import logging
from datetime import datetime
from typing import Callable, List, Optional

from ..config import settings
from .analysis import TypingPatternAnalyzer
from .detection import SuspiciousActivityDetector
from .models import ActivitySession, ActivityType, SuspiciousEvent, epoch_millis, parse_timestamp
from .scoring import IntegrityScorer
from .storage import PersistenceGateway
from .thresholds import IntegrityThresholds
from .utils.logging import log_session_start, log_session_end, log_event_flagged, log_false_positive

logger = logging.getLogger(__name__)


class SessionManager:
    """
    Owns one learner's activity session and routes raw UI events
    through analysis, detection and scoring.

    At most one session is open per manager. Calls that arrive with no
    open session (e.g. after the learner navigated away) are ignored.

    Keystrokes are buffered as inter-keystroke intervals. Every
    `batch_size` intervals the batch is analyzed and the buffer is
    trimmed to its last `retain` intervals before any storage call, so
    keystrokes arriving during a persistence round-trip are kept.
    """

    def __init__(
        self,
        store: PersistenceGateway,
        grade: Optional[int] = None,
        thresholds: Optional[IntegrityThresholds] = None,
        analyzer: Optional[TypingPatternAnalyzer] = None,
        detector: Optional[SuspiciousActivityDetector] = None,
        scorer: Optional[IntegrityScorer] = None,
        clock: Optional[Callable[[], datetime]] = None,
        batch_size: Optional[int] = None,
        retain: Optional[int] = None,
        min_intervals: Optional[int] = None
    ):
        """
        Initialize a session manager.

        Args:
            store: Gateway for the "sessions" namespace
            grade: Learner grade used for speed thresholds (default from settings)
            thresholds: Shared detection/scoring configuration
            clock: Returns the current naive UTC datetime (injectable for tests)
            batch_size: Intervals per analyzed batch
            retain: Intervals kept after a batch is analyzed
            min_intervals: Smallest batch worth analyzing
        """
        self.store = store
        self.grade = grade if grade is not None else settings.DEFAULT_GRADE
        self.thresholds = thresholds or IntegrityThresholds()
        self.analyzer = analyzer or TypingPatternAnalyzer(pause_ms=self.thresholds.pause_ms)
        self.detector = detector or SuspiciousActivityDetector(self.thresholds)
        self.scorer = scorer or IntegrityScorer(self.thresholds)
        self._clock = clock or datetime.utcnow
        self.batch_size = batch_size or settings.KEYSTROKE_BATCH_SIZE
        self.retain = retain if retain is not None else settings.KEYSTROKE_RETAIN
        self.min_intervals = min_intervals if min_intervals is not None else settings.MIN_ANALYSIS_INTERVALS

        self._current: Optional[ActivitySession] = None
        self._buffer: List[float] = []
        self._last_keystroke: Optional[float] = None

    @property
    def current_session(self) -> Optional[ActivitySession]:
        return self._current

    @property
    def buffered_intervals(self) -> List[float]:
        return list(self._buffer)

    def _reset_buffer(self):
        self._buffer = []
        self._last_keystroke = None

    async def _persist(self, session: ActivitySession) -> bool:
        try:
            await self.store.set(session.id, session.to_dict())
            return True
        except Exception as e:
            logger.error(f"Failed to persist session {session.id}, monitoring continues in memory: {e}")
            return False

    async def _key_taken(self, key: str) -> bool:
        try:
            return await self.store.get(key) is not None
        except Exception as e:
            logger.error(f"Failed to check session key {key}: {e}")
            return False

    def _record_event(self, session: ActivitySession, event: SuspiciousEvent):
        session.suspicious_events.append(event)
        session.integrity_score = self.scorer.apply_event(session.integrity_score, event)
        log_event_flagged(session.id, event.type.value, event.severity.value, session.integrity_score)

    # ========================================================================
    # Lifecycle
    # ========================================================================

    async def start_session(self, user_id: str, subject: str, activity_type: str) -> ActivitySession:
        """
        Start monitoring a new activity.

        An already-open session is ended (finalized and persisted) first.

        Args:
            user_id: Learner ID
            subject: Subject of the activity
            activity_type: quiz, writing, worksheet or creative

        Returns:
            The new open session
        """
        activity = ActivityType(activity_type)

        if self._current is not None:
            logger.warning(f"Session {self._current.id} still open, closing it before starting a new one")
            await self.end_session()

        now = self._clock()
        millis = epoch_millis(now)
        key = f"session_{user_id}_{millis}"
        while await self._key_taken(key):
            millis += 1
            key = f"session_{user_id}_{millis}"

        session = ActivitySession(
            id=key,
            user_id=user_id,
            start_time=now.isoformat(),
            subject=subject,
            activity_type=activity
        )
        self._current = session
        self._reset_buffer()

        await self._persist(session)
        log_session_start(session.id, user_id, activity.value)
        return session

    async def end_session(self) -> Optional[ActivitySession]:
        """
        Seal the open session.

        Returns:
            The finalized session, or None if no session is open
        """
        session = self._current
        if session is None:
            logger.debug("end_session called with no open session")
            return None

        self._current = None
        self._reset_buffer()

        now = self._clock()
        session.end_time = now.isoformat()
        elapsed = (now - parse_timestamp(session.start_time)).total_seconds()
        session.total_time_spent = max(0, int(elapsed // 60))
        session.integrity_score = self.scorer.finalize(session)

        await self._persist(session)
        log_session_end(
            session.id,
            session.integrity_score,
            len(session.suspicious_events),
            session.total_time_spent
        )
        return session

    # ========================================================================
    # Raw events
    # ========================================================================

    async def record_keystroke(self, timestamp_ms: Optional[float] = None):
        """
        Record a keystroke.

        Args:
            timestamp_ms: Keystroke time in epoch milliseconds (defaults to now)
        """
        session = self._current
        if session is None:
            return

        if timestamp_ms is None:
            timestamp_ms = epoch_millis(self._clock())

        if self._last_keystroke is not None:
            self._buffer.append(timestamp_ms - self._last_keystroke)
        self._last_keystroke = timestamp_ms

        if len(self._buffer) < self.batch_size:
            return

        batch = list(self._buffer)
        self._buffer = self._buffer[-self.retain:] if self.retain else []
        await self._analyze_batch(session, batch)

    async def _analyze_batch(self, session: ActivitySession, batch: List[float]):
        if len(batch) < self.min_intervals:
            return

        now = self._clock()
        pattern = self.analyzer.analyze(batch, timestamp=now.isoformat())
        session.typing_patterns.append(pattern)

        for event in self.detector.check_typing(pattern, session.typing_patterns, self.grade, now):
            self._record_event(session, event)

        await self._persist(session)

    async def handle_paste_event(self, pasted_length: int, time_spent_ms: float) -> Optional[SuspiciousEvent]:
        """
        Evaluate a paste and reset cadence tracking.

        Args:
            pasted_length: Number of characters pasted
            time_spent_ms: Time taken by the paste

        Returns:
            The flagged event, if any
        """
        session = self._current
        if session is None:
            return None

        # Cadence measured across a paste is meaningless
        self._reset_buffer()

        event = self.detector.check_paste(pasted_length, time_spent_ms, self._clock())
        if event is not None:
            self._record_event(session, event)
            await self._persist(session)
        return event

    async def handle_inactivity_gap(self, gap_ms: float) -> Optional[SuspiciousEvent]:
        """
        Evaluate a period without input.

        Returns:
            The flagged event, if any
        """
        session = self._current
        if session is None:
            return None

        event = self.detector.check_inactivity(gap_ms, self._clock())
        if event is not None:
            self._record_event(session, event)
            await self._persist(session)
        return event

    # ========================================================================
    # Guardian corrections
    # ========================================================================

    async def mark_false_positive(self, session_id: str, event_id: str) -> bool:
        """
        Mark a suspicious event as a false positive.

        Only the event's flag changes; a sealed session keeps its score.
        The open session is updated in memory so the flag survives its
        next save and counts at finalize.

        Returns:
            True if the event was found and saved
        """
        if self._current is not None and self._current.id == session_id:
            session = self._current
        else:
            try:
                data = await self.store.get(session_id)
            except Exception as e:
                logger.error(f"Failed to load session {session_id}: {e}")
                return False
            if data is None:
                logger.warning(f"Unknown session {session_id}, false positive not recorded")
                return False
            session = ActivitySession.from_dict(data)

        event = session.find_event(event_id)
        if event is None:
            logger.warning(f"Unknown event {event_id} in session {session_id}")
            return False

        event.false_positive = True
        saved = await self._persist(session)
        if saved:
            log_false_positive(session_id, event_id)
        return saved
