"""
Pytest Configuration for Integrity Monitor Tests
"""
import os
import sys
from datetime import datetime, timedelta

import pytest

sys.path.insert(0, os.path.dirname(os.path.dirname(os.path.abspath(__file__))))

from integrity_service.monitor.storage import InMemoryGateway, SESSIONS_NAMESPACE, QUIZ_SESSIONS_NAMESPACE


class FakeClock:
    """Controllable naive-UTC clock"""
    
    def __init__(self, start: datetime = None):
        self.now = start or datetime(2024, 3, 4, 15, 0, 0)
    
    def __call__(self) -> datetime:
        return self.now
    
    def advance(self, **kwargs):
        self.now += timedelta(**kwargs)
    
    @property
    def millis(self) -> int:
        return int((self.now - datetime(1970, 1, 1)).total_seconds() * 1000)


@pytest.fixture
def clock():
    return FakeClock()


@pytest.fixture
def sessions_store():
    return InMemoryGateway(SESSIONS_NAMESPACE)


@pytest.fixture
def quiz_store():
    return InMemoryGateway(QUIZ_SESSIONS_NAMESPACE)


@pytest.fixture
def manager(sessions_store, clock):
    """Session manager for a grade-4 learner"""
    from integrity_service.monitor.session import SessionManager
    return SessionManager(sessions_store, grade=4, clock=clock)


@pytest.fixture
def quiz_manager(quiz_store, clock):
    from integrity_service.monitor.quiz_session import QuizSessionManager
    return QuizSessionManager(quiz_store, clock=clock)


def make_pattern(intervals, speed=None, timestamp="2024-03-04T15:00:00"):
    """Build a TypingPattern, deriving speed unless given"""
    from integrity_service.monitor.analysis import TypingPatternAnalyzer
    from integrity_service.monitor.models import TypingPattern
    
    analyzer = TypingPatternAnalyzer()
    pattern = analyzer.analyze(intervals, timestamp=timestamp)
    if speed is None:
        return pattern
    return TypingPattern(
        keystroke_intervals=pattern.keystroke_intervals,
        average_speed=speed,
        pause_pattern=pattern.pause_pattern,
        backspace_frequency=0,
        timestamp=timestamp
    )


def make_event(severity="medium", event_type="rapid_paste", event_id="event_1", false_positive=False):
    from integrity_service.monitor.models import EventType, Severity, SuspiciousEvent
    
    return SuspiciousEvent(
        id=event_id,
        timestamp="2024-03-04T15:00:00",
        type=EventType(event_type),
        severity=Severity(severity),
        description="test event",
        context="test",
        false_positive=false_positive
    )
