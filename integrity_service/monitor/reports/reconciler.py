"""
Stale Session Reconciler - Seals sessions abandoned without an explicit end

A closed tab or lost connection leaves a session open forever. Running
the reconciler before report aggregation finalizes such sessions from
their event log.
"""

import logging
from datetime import datetime, timedelta
from typing import Callable, Iterable, List, Optional

from ...config import settings
from ..models import ActivitySession, parse_timestamp
from ..scoring import IntegrityScorer
from ..storage import PersistenceGateway
from ..utils.logging import log_integrity_event

logger = logging.getLogger(__name__)


class StaleSessionReconciler:
    """Force-finalizes sessions left open past a timeout"""

    def __init__(
        self,
        store: PersistenceGateway,
        scorer: Optional[IntegrityScorer] = None,
        max_open_minutes: Optional[int] = None,
        clock: Optional[Callable[[], datetime]] = None
    ):
        self.store = store
        self.scorer = scorer or IntegrityScorer()
        self.max_open_minutes = (
            max_open_minutes if max_open_minutes is not None else settings.STALE_SESSION_MINUTES
        )
        self._clock = clock or datetime.utcnow

    @staticmethod
    def last_seen(session: ActivitySession) -> datetime:
        """Latest of the start time, pattern times and event times"""
        stamps = [session.start_time]
        stamps += [p.timestamp for p in session.typing_patterns]
        stamps += [e.timestamp for e in session.suspicious_events]
        return max(parse_timestamp(s) for s in stamps)

    async def reconcile(
        self,
        user_id: Optional[str] = None,
        skip_ids: Optional[Iterable[str]] = None
    ) -> List[ActivitySession]:
        """
        Seal every stale open session.

        A session is stale when its last recorded activity is older than
        `max_open_minutes`, not when it merely started long ago.

        Args:
            user_id: Restrict to keys containing this user ID
            skip_ids: Sessions still held open by a live manager

        Returns:
            Sessions that were sealed
        """
        now = self._clock()
        cutoff = now - timedelta(minutes=self.max_open_minutes)
        skip = set(skip_ids or [])
        sealed = []

        try:
            keys = await self.store.keys()
        except Exception as e:
            logger.error(f"Reconciliation skipped, cannot list sessions: {e}")
            return sealed

        for key in keys:
            if user_id and user_id not in key:
                continue
            if key in skip:
                continue
            try:
                data = await self.store.get(key)
                if data is None:
                    continue
                session = ActivitySession.from_dict(data)
                if not session.is_open:
                    continue

                last_seen = self.last_seen(session)
                if last_seen > cutoff:
                    continue

                session.end_time = last_seen.isoformat()
                elapsed = (last_seen - parse_timestamp(session.start_time)).total_seconds()
                session.total_time_spent = max(0, int(elapsed // 60))
                session.integrity_score = self.scorer.finalize(session)

                await self.store.set(key, session.to_dict())
                sealed.append(session)
                log_integrity_event(
                    session.id,
                    "session_reconciled",
                    {"integrity_score": session.integrity_score, "minutes": session.total_time_spent}
                )
            except Exception as e:
                logger.error(f"Failed to reconcile session {key}: {e}")

        return sealed
