"""
Integrity Monitor API - FastAPI endpoints for activity and quiz monitoring

Endpoints:
- POST /api/integrity/start - Start monitoring an activity
- POST /api/integrity/keystroke - Record a keystroke
- POST /api/integrity/paste - Record a paste event
- POST /api/integrity/inactivity - Record an inactivity gap
- POST /api/integrity/end - End the learner's activity session
- GET /api/integrity/current/{user_id} - Open session of a learner
- POST /api/integrity/false-positive - Guardian false-positive correction
- POST /api/integrity/quiz/start - Start a quiz session
- POST /api/integrity/quiz/response - Record a quiz answer, get feedback
- POST /api/integrity/quiz/end - Seal a quiz session
- GET /api/integrity/quiz/{session_id} - Get a quiz session
- GET /api/integrity/report/{user_id} - Guardian integrity report

Monitoring problems never surface as errors to the student: calls
without an open session or for unknown sessions return empty results.
A learner's manager is registered by /start and released by /end.
"""

import asyncio
import logging
from typing import Any, Dict, List, Optional

from fastapi import APIRouter, HTTPException, Query
from pydantic import BaseModel, Field

from ..config import settings
from .models import ActivityType
from .quiz_session import QuizSessionManager
from .reports import ReportAggregator, StaleSessionReconciler
from .scoring import IntegrityScorer
from .session import SessionManager
from .storage import (
    PersistenceGateway,
    create_gateway,
    SESSIONS_NAMESPACE,
    QUIZ_SESSIONS_NAMESPACE
)

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/integrity", tags=["Integrity"])

# One manager per learner, each guarded by its own lock
_stores: Dict[str, PersistenceGateway] = {}
_managers: Dict[str, SessionManager] = {}
_locks: Dict[str, asyncio.Lock] = {}
_status_scorer = IntegrityScorer()


def configure_stores(
    sessions: Optional[PersistenceGateway] = None,
    quiz_sessions: Optional[PersistenceGateway] = None
):
    """Replace the storage gateways and drop all per-learner state"""
    _stores.clear()
    _managers.clear()
    _locks.clear()
    if sessions is not None:
        _stores[SESSIONS_NAMESPACE] = sessions
    if quiz_sessions is not None:
        _stores[QUIZ_SESSIONS_NAMESPACE] = quiz_sessions


def get_store(namespace: str) -> PersistenceGateway:
    if namespace not in _stores:
        _stores[namespace] = create_gateway(namespace)
    return _stores[namespace]


def get_manager(user_id: str) -> SessionManager:
    """Registered manager of a learner, created on first use"""
    if user_id not in _managers:
        _managers[user_id] = SessionManager(get_store(SESSIONS_NAMESPACE))
        _locks[user_id] = asyncio.Lock()
    return _managers[user_id]


def find_manager(user_id: str) -> Optional[SessionManager]:
    """Registered manager of a learner, without creating one"""
    return _managers.get(user_id)


def get_lock(user_id: str) -> asyncio.Lock:
    get_manager(user_id)
    return _locks[user_id]


def release_manager(user_id: str, manager: SessionManager):
    """Drop a learner's manager and lock once no session is open"""
    if _managers.get(user_id) is manager and manager.current_session is None:
        del _managers[user_id]
        del _locks[user_id]
        logger.debug(f"Released session manager for {user_id}")


def open_session_ids() -> List[str]:
    return [m.current_session.id for m in _managers.values() if m.current_session is not None]


def get_quiz_manager() -> QuizSessionManager:
    return QuizSessionManager(get_store(QUIZ_SESSIONS_NAMESPACE))


# ============== Request/Response Models ==============

class StartSessionRequest(BaseModel):
    """Request to start monitoring an activity"""
    user_id: str = Field(..., description="ID of the learner")
    subject: str = Field(..., description="Subject of the activity")
    activity_type: ActivityType = Field(..., description="quiz, writing, worksheet or creative")
    grade: Optional[int] = Field(None, description="Learner grade (3-6)")


class KeystrokeRequest(BaseModel):
    """Request to record a keystroke"""
    user_id: str
    timestamp: Optional[float] = Field(None, description="Epoch milliseconds")


class PasteRequest(BaseModel):
    """Request to record a paste"""
    user_id: str
    pasted_length: int = Field(..., ge=0)
    time_spent_ms: float = Field(..., ge=0)


class InactivityRequest(BaseModel):
    """Request to record an inactivity gap"""
    user_id: str
    gap_ms: float = Field(..., ge=0)


class EndSessionRequest(BaseModel):
    """Request to end the learner's activity session"""
    user_id: str


class FalsePositiveRequest(BaseModel):
    """Guardian correction of a suspicious event"""
    user_id: str
    session_id: str
    event_id: str


class SessionResponse(BaseModel):
    """Activity session state"""
    active: bool
    session: Optional[Dict[str, Any]] = None
    status: Optional[str] = None


class EventResponse(BaseModel):
    """Result of a paste or inactivity report"""
    recorded: bool
    event: Optional[Dict[str, Any]] = None
    current_score: Optional[int] = None


class FalsePositiveResponse(BaseModel):
    marked: bool


class QuizStartRequest(BaseModel):
    """Request to start a quiz session"""
    user_id: str
    subject: str
    grade: int = Field(4, description="Learner grade (3-6)")


class QuizResponseRequest(BaseModel):
    """A submitted quiz answer"""
    session_id: str
    question_id: str
    answer: str = ""
    time_spent: float = Field(..., ge=0, description="Seconds spent on the question")
    typing_intervals: List[float] = Field(default_factory=list)
    revisions: int = Field(0, ge=0)


class QuizEndRequest(BaseModel):
    """Request to seal a quiz session"""
    session_id: str
    overall_score: Optional[int] = None
    integrity_score: Optional[int] = None


class FeedbackResponse(BaseModel):
    feedback: List[Dict[str, Any]]


class QuizSessionResponse(BaseModel):
    found: bool
    session: Optional[Dict[str, Any]] = None


# ============== Activity Endpoints ==============

def _session_response(manager: Optional[SessionManager], session=None) -> SessionResponse:
    if manager is not None:
        session = session or manager.current_session
    if session is None:
        return SessionResponse(active=False)
    return SessionResponse(
        active=session.is_open,
        session=session.to_dict(),
        status=_status_scorer.get_status(session.integrity_score)
    )


def _event_response(manager: Optional[SessionManager], event=None) -> EventResponse:
    session = manager.current_session if manager is not None else None
    return EventResponse(
        recorded=session is not None,
        event=event.to_dict() if event else None,
        current_score=session.integrity_score if session else None
    )


@router.post("/start", response_model=SessionResponse)
async def start_session(request: StartSessionRequest):
    """
    Start monitoring an activity.

    A session the learner left open is finalized first.
    """
    manager = get_manager(request.user_id)
    lock = get_lock(request.user_id)
    async with lock:
        # The manager may have been released while this request waited
        if find_manager(request.user_id) is None:
            _managers[request.user_id] = manager
            _locks[request.user_id] = lock
        if request.grade is not None:
            manager.grade = request.grade
        session = await manager.start_session(
            request.user_id,
            request.subject,
            request.activity_type
        )
    return _session_response(manager, session)


@router.post("/keystroke", response_model=SessionResponse)
async def record_keystroke(request: KeystrokeRequest):
    """Record a keystroke; batches are analyzed automatically"""
    manager = find_manager(request.user_id)
    if manager is None:
        return SessionResponse(active=False)
    async with get_lock(request.user_id):
        await manager.record_keystroke(request.timestamp)
    return _session_response(manager)


@router.post("/paste", response_model=EventResponse)
async def record_paste(request: PasteRequest):
    """Record a paste event"""
    manager = find_manager(request.user_id)
    if manager is None:
        return _event_response(None)
    async with get_lock(request.user_id):
        event = await manager.handle_paste_event(request.pasted_length, request.time_spent_ms)
    return _event_response(manager, event)


@router.post("/inactivity", response_model=EventResponse)
async def record_inactivity(request: InactivityRequest):
    """Record a period without input"""
    manager = find_manager(request.user_id)
    if manager is None:
        return _event_response(None)
    async with get_lock(request.user_id):
        event = await manager.handle_inactivity_gap(request.gap_ms)
    return _event_response(manager, event)


@router.post("/end", response_model=SessionResponse)
async def end_session(request: EndSessionRequest):
    """End the learner's activity session and return the sealed result"""
    manager = find_manager(request.user_id)
    if manager is None:
        return SessionResponse(active=False)
    async with get_lock(request.user_id):
        session = await manager.end_session()
        release_manager(request.user_id, manager)
    if session is None:
        return SessionResponse(active=False)
    return _session_response(None, session)


@router.get("/current/{user_id}", response_model=SessionResponse)
async def get_current_session(user_id: str):
    """Open session of a learner, if any"""
    return _session_response(find_manager(user_id))


@router.post("/false-positive", response_model=FalsePositiveResponse)
async def mark_false_positive(request: FalsePositiveRequest):
    """Mark a suspicious event as a false positive"""
    manager = find_manager(request.user_id)
    if manager is None:
        # Sealed sessions only need the store
        manager = SessionManager(get_store(SESSIONS_NAMESPACE))
        marked = await manager.mark_false_positive(request.session_id, request.event_id)
        return FalsePositiveResponse(marked=marked)
    async with get_lock(request.user_id):
        marked = await manager.mark_false_positive(request.session_id, request.event_id)
    return FalsePositiveResponse(marked=marked)


# ============== Quiz Endpoints ==============

@router.post("/quiz/start", response_model=QuizSessionResponse)
async def start_quiz(request: QuizStartRequest):
    """Start a quiz session"""
    session = await get_quiz_manager().start_quiz_session(
        request.user_id,
        request.subject,
        request.grade
    )
    return QuizSessionResponse(found=True, session=session.to_dict())


@router.post("/quiz/response", response_model=FeedbackResponse)
async def record_quiz_response(request: QuizResponseRequest):
    """Record a quiz answer and return the feedback generated for it"""
    feedback = await get_quiz_manager().record_quiz_response(
        request.session_id,
        request.question_id,
        request.answer,
        request.time_spent,
        request.typing_intervals,
        request.revisions
    )
    return FeedbackResponse(feedback=[f.to_dict() for f in feedback])


@router.post("/quiz/end", response_model=QuizSessionResponse)
async def end_quiz(request: QuizEndRequest):
    """Seal a quiz session"""
    session = await get_quiz_manager().end_quiz_session(
        request.session_id,
        overall_score=request.overall_score,
        integrity_score=request.integrity_score
    )
    if session is None:
        return QuizSessionResponse(found=False)
    return QuizSessionResponse(found=True, session=session.to_dict())


@router.get("/quiz/{session_id}", response_model=QuizSessionResponse)
async def get_quiz(session_id: str):
    """Get a quiz session"""
    session = await get_quiz_manager().get_quiz_session(session_id)
    if session is None:
        raise HTTPException(status_code=404, detail="Quiz session not found")
    return QuizSessionResponse(found=True, session=session.to_dict())


# ============== Reports ==============

@router.get("/report/{user_id}")
async def get_report(
    user_id: str,
    days: int = Query(settings.REPORT_DAYS, ge=1, le=365),
    reconcile: bool = Query(True, description="Seal stale open sessions first")
):
    """
    Guardian integrity report for the last `days` days.
    """
    store = get_store(SESSIONS_NAMESPACE)
    if reconcile:
        reconciler = StaleSessionReconciler(store)
        if find_manager(user_id) is not None:
            async with get_lock(user_id):
                await reconciler.reconcile(user_id, skip_ids=open_session_ids())
        else:
            await reconciler.reconcile(user_id, skip_ids=open_session_ids())
    report = await ReportAggregator(store).generate_integrity_report(user_id, days)
    return report.to_dict()


# ============== Health Check ==============

@router.get("/health")
async def health_check():
    """Health check for the integrity module"""
    return {
        "status": "healthy",
        "open_sessions": len(open_session_ids()),
        "module": "integrity"
    }
