"""
Tests for QuizSessionManager
"""
import pytest
from unittest.mock import AsyncMock

from integrity_service.monitor.exceptions import PersistenceError
from integrity_service.monitor.models import Confidence, FeedbackType
from integrity_service.monitor.quiz_session import QuizSessionManager
from integrity_service.monitor.storage import InMemoryGateway


class TestQuizLifecycle:
    
    @pytest.mark.asyncio
    async def test_start_quiz_session(self, quiz_manager, quiz_store, clock):
        session = await quiz_manager.start_quiz_session("u1", "science", 5)
        
        assert session.id == f"quiz_u1_{clock.millis}"
        assert session.integrity_score == 100
        assert session.responses == []
        assert session.feedback == []
        assert session.flagged_for_review is False
        assert await quiz_store.get(session.id) is not None
    
    @pytest.mark.asyncio
    async def test_quick_answer_gets_take_your_time(self, quiz_manager):
        """timeSpent=5, no revisions, no pauses -> low confidence"""
        session = await quiz_manager.start_quiz_session("u1", "math", 4)
        
        feedback = await quiz_manager.record_quiz_response(
            session.id, "q7", "12", 5, [200, 300, 250], 0
        )
        
        suggestions = [f for f in feedback if f.type == FeedbackType.SUGGESTION]
        assert any(f.message.startswith("Take your time") for f in suggestions)
        assert all(f.question_id == "q7" for f in feedback)
        
        stored = await quiz_manager.get_quiz_session(session.id)
        assert stored.responses[0].confidence == Confidence.LOW
    
    @pytest.mark.asyncio
    async def test_response_is_persisted(self, quiz_manager):
        session = await quiz_manager.start_quiz_session("u1", "math", 4)
        
        await quiz_manager.record_quiz_response(session.id, "q1", "four", 30, [300, 500, 4000], 2)
        stored = await quiz_manager.get_quiz_session(session.id)
        
        response = stored.responses[0]
        assert response.question_id == "q1"
        assert response.confidence == Confidence.HIGH
        assert response.revision_count == 2
        assert response.typing_pattern.backspace_frequency == 2
        assert response.typing_pattern.average_speed == round(60000 / (1600 * 5))
        assert response.typing_pattern.pause_pattern == [4000]
    
    @pytest.mark.asyncio
    async def test_returns_only_new_feedback(self, quiz_manager):
        session = await quiz_manager.start_quiz_session("u1", "math", 4)
        
        first = await quiz_manager.record_quiz_response(session.id, "q1", "1", 5, [], 0)
        second = await quiz_manager.record_quiz_response(session.id, "q2", "2", 30, [], 1)
        stored = await quiz_manager.get_quiz_session(session.id)
        
        assert len(first) == 2
        assert second == []
        assert len(stored.feedback) == 2
        assert len(stored.responses) == 2
    
    @pytest.mark.asyncio
    async def test_unknown_session_returns_empty(self, quiz_manager):
        feedback = await quiz_manager.record_quiz_response("quiz_nobody_1", "q1", "x", 5, [], 0)
        
        assert feedback == []
    
    @pytest.mark.asyncio
    async def test_storage_failure_returns_empty(self):
        store = InMemoryGateway("quiz_sessions")
        store.get = AsyncMock(side_effect=PersistenceError("get", "quiz_u1_1"))
        manager = QuizSessionManager(store)
        
        assert await manager.record_quiz_response("quiz_u1_1", "q1", "x", 5, [], 0) == []


class TestQuizEnd:
    
    @pytest.mark.asyncio
    async def test_clean_quiz_not_flagged(self, quiz_manager):
        session = await quiz_manager.start_quiz_session("u1", "math", 4)
        
        sealed = await quiz_manager.end_quiz_session(session.id, overall_score=85)
        
        assert sealed.end_time is not None
        assert sealed.overall_score == 85
        assert sealed.flagged_for_review is False
    
    @pytest.mark.asyncio
    async def test_low_integrity_flagged(self, quiz_manager):
        session = await quiz_manager.start_quiz_session("u1", "math", 4)
        
        sealed = await quiz_manager.end_quiz_session(session.id, integrity_score=69)
        stored = await quiz_manager.get_quiz_session(session.id)
        
        assert sealed.flagged_for_review is True
        assert stored.flagged_for_review is True
        assert stored.integrity_score == 69
    
    @pytest.mark.asyncio
    async def test_threshold_is_strict(self, quiz_manager):
        session = await quiz_manager.start_quiz_session("u1", "math", 4)
        
        sealed = await quiz_manager.end_quiz_session(session.id, integrity_score=70)
        
        assert sealed.flagged_for_review is False
    
    @pytest.mark.asyncio
    async def test_unknown_quiz(self, quiz_manager):
        assert await quiz_manager.end_quiz_session("quiz_missing") is None


class TestQuizStorage:
    
    @pytest.mark.asyncio
    async def test_save_failure_returns_empty(self, quiz_manager, quiz_store):
        session = await quiz_manager.start_quiz_session("u1", "math", 4)
        quiz_store.set = AsyncMock(side_effect=PersistenceError("set", session.id))
        
        feedback = await quiz_manager.record_quiz_response(session.id, "q1", "12", 5, [], 0)
        
        assert feedback == []
        stored = await quiz_manager.get_quiz_session(session.id)
        assert stored.responses == []
    
    @pytest.mark.asyncio
    async def test_same_millisecond_starts_get_distinct_keys(self, quiz_store, clock):
        first = await QuizSessionManager(quiz_store, clock=clock).start_quiz_session("u1", "math", 4)
        second = await QuizSessionManager(quiz_store, clock=clock).start_quiz_session("u1", "math", 4)
        
        assert first.id == f"quiz_u1_{clock.millis}"
        assert second.id == f"quiz_u1_{clock.millis + 1}"
        assert sorted(await quiz_store.keys()) == sorted([first.id, second.id])
