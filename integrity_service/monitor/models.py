"""
Integrity Monitor Models - Sessions, typing patterns, events and reports

Timestamps are stored as ISO-8601 strings so records round-trip through
the key-value store unchanged.
"""

from dataclasses import dataclass, field, asdict
from datetime import datetime
from enum import Enum
from typing import Dict, List, Optional, Any


# ============================================================================
# Enums
# ============================================================================

class ActivityType(str, Enum):
    QUIZ = "quiz"
    WRITING = "writing"
    WORKSHEET = "worksheet"
    CREATIVE = "creative"


class EventType(str, Enum):
    RAPID_PASTE = "rapid_paste"
    UNUSUAL_SPEED = "unusual_speed"
    PATTERN_BREAK = "pattern_break"
    TIME_GAP = "time_gap"
    MASS_DELETE = "mass_delete"  # reserved, no detection rule


class Severity(str, Enum):
    LOW = "low"
    MEDIUM = "medium"
    HIGH = "high"


class Confidence(str, Enum):
    LOW = "low"
    MEDIUM = "medium"
    HIGH = "high"


class FeedbackType(str, Enum):
    ENCOURAGEMENT = "encouragement"
    SUGGESTION = "suggestion"
    QUESTION = "question"
    CONCERN = "concern"


class Priority(str, Enum):
    LOW = "low"
    MEDIUM = "medium"
    HIGH = "high"


def parse_timestamp(value: str) -> datetime:
    """Parse an ISO timestamp written by this module"""
    return datetime.fromisoformat(value)


def epoch_millis(moment: datetime) -> int:
    """Milliseconds since the epoch for a naive UTC datetime"""
    return int((moment - datetime(1970, 1, 1)).total_seconds() * 1000)


# ============================================================================
# Activity sessions
# ============================================================================

@dataclass(frozen=True)
class TypingPattern:
    """Windowed snapshot of keystroke cadence"""
    keystroke_intervals: List[float]
    average_speed: int          # approximate WPM, derived from intervals
    pause_pattern: List[float]  # intervals longer than the pause limit
    backspace_frequency: int
    timestamp: str

    def to_dict(self) -> Dict[str, Any]:
        return asdict(self)

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "TypingPattern":
        return cls(
            keystroke_intervals=list(data.get("keystroke_intervals", [])),
            average_speed=data.get("average_speed", 0),
            pause_pattern=list(data.get("pause_pattern", [])),
            backspace_frequency=data.get("backspace_frequency", 0),
            timestamp=data["timestamp"]
        )


@dataclass
class SuspiciousEvent:
    """A flagged timing, paste or inactivity anomaly"""
    id: str
    timestamp: str
    type: EventType
    severity: Severity
    description: str
    context: str
    false_positive: bool = False  # set by a guardian after review

    def to_dict(self) -> Dict[str, Any]:
        return {
            **asdict(self),
            "type": self.type.value,
            "severity": self.severity.value
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "SuspiciousEvent":
        return cls(
            id=data["id"],
            timestamp=data["timestamp"],
            type=EventType(data["type"]),
            severity=Severity(data["severity"]),
            description=data.get("description", ""),
            context=data.get("context", ""),
            false_positive=bool(data.get("false_positive", False))
        )


@dataclass
class ActivitySession:
    """A monitored activity from start to end"""
    id: str
    user_id: str
    start_time: str
    subject: str
    activity_type: ActivityType
    end_time: Optional[str] = None
    total_time_spent: int = 0  # whole minutes
    typing_patterns: List[TypingPattern] = field(default_factory=list)
    suspicious_events: List[SuspiciousEvent] = field(default_factory=list)
    integrity_score: int = 100

    @property
    def is_open(self) -> bool:
        return self.end_time is None

    def find_event(self, event_id: str) -> Optional[SuspiciousEvent]:
        for event in self.suspicious_events:
            if event.id == event_id:
                return event
        return None

    def to_dict(self) -> Dict[str, Any]:
        return {
            "id": self.id,
            "user_id": self.user_id,
            "start_time": self.start_time,
            "end_time": self.end_time,
            "total_time_spent": self.total_time_spent,
            "subject": self.subject,
            "activity_type": self.activity_type.value,
            "typing_patterns": [p.to_dict() for p in self.typing_patterns],
            "suspicious_events": [e.to_dict() for e in self.suspicious_events],
            "integrity_score": self.integrity_score
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "ActivitySession":
        return cls(
            id=data["id"],
            user_id=data["user_id"],
            start_time=data["start_time"],
            end_time=data.get("end_time"),
            total_time_spent=data.get("total_time_spent", 0),
            subject=data.get("subject", ""),
            activity_type=ActivityType(data["activity_type"]),
            typing_patterns=[TypingPattern.from_dict(p) for p in data.get("typing_patterns", [])],
            suspicious_events=[SuspiciousEvent.from_dict(e) for e in data.get("suspicious_events", [])],
            integrity_score=data.get("integrity_score", 100)
        )


# ============================================================================
# Quiz sessions
# ============================================================================

@dataclass
class AutomatedFeedback:
    """Age-appropriate message shown while the student works"""
    type: FeedbackType
    message: str
    priority: Priority
    question_id: Optional[str] = None

    def to_dict(self) -> Dict[str, Any]:
        return {
            "type": self.type.value,
            "message": self.message,
            "question_id": self.question_id,
            "priority": self.priority.value
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "AutomatedFeedback":
        return cls(
            type=FeedbackType(data["type"]),
            message=data["message"],
            priority=Priority(data["priority"]),
            question_id=data.get("question_id")
        )


@dataclass
class QuizResponse:
    """One submitted answer with its typing telemetry"""
    question_id: str
    answer: str
    time_spent: float  # seconds
    typing_pattern: TypingPattern
    revision_count: int
    confidence: Confidence

    def to_dict(self) -> Dict[str, Any]:
        return {
            "question_id": self.question_id,
            "answer": self.answer,
            "time_spent": self.time_spent,
            "typing_pattern": self.typing_pattern.to_dict(),
            "revision_count": self.revision_count,
            "confidence": self.confidence.value
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "QuizResponse":
        return cls(
            question_id=data["question_id"],
            answer=data.get("answer", ""),
            time_spent=data.get("time_spent", 0),
            typing_pattern=TypingPattern.from_dict(data["typing_pattern"]),
            revision_count=data.get("revision_count", 0),
            confidence=Confidence(data["confidence"])
        )


@dataclass
class QuizSession:
    """A question/answer flow with feedback history"""
    id: str
    user_id: str
    subject: str
    grade: int
    start_time: str
    end_time: Optional[str] = None
    responses: List[QuizResponse] = field(default_factory=list)
    overall_score: int = 0  # correctness, computed by the grading collaborator
    integrity_score: int = 100
    feedback: List[AutomatedFeedback] = field(default_factory=list)
    flagged_for_review: bool = False

    def to_dict(self) -> Dict[str, Any]:
        return {
            "id": self.id,
            "user_id": self.user_id,
            "subject": self.subject,
            "grade": self.grade,
            "start_time": self.start_time,
            "end_time": self.end_time,
            "responses": [r.to_dict() for r in self.responses],
            "overall_score": self.overall_score,
            "integrity_score": self.integrity_score,
            "feedback": [f.to_dict() for f in self.feedback],
            "flagged_for_review": self.flagged_for_review
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "QuizSession":
        return cls(
            id=data["id"],
            user_id=data["user_id"],
            subject=data.get("subject", ""),
            grade=data.get("grade", 4),
            start_time=data["start_time"],
            end_time=data.get("end_time"),
            responses=[QuizResponse.from_dict(r) for r in data.get("responses", [])],
            overall_score=data.get("overall_score", 0),
            integrity_score=data.get("integrity_score", 100),
            feedback=[AutomatedFeedback.from_dict(f) for f in data.get("feedback", [])],
            flagged_for_review=bool(data.get("flagged_for_review", False))
        )


# ============================================================================
# Reports
# ============================================================================

@dataclass
class IntegrityReport:
    """Guardian-facing summary over a reporting window"""
    user_id: str
    period_start: str
    period_end: str
    total_sessions: int = 0
    average_integrity_score: int = 100
    suspicious_events_count: int = 0
    flagged_sessions: List[ActivitySession] = field(default_factory=list)
    recommendations: List[str] = field(default_factory=list)
    false_positive_rate: float = 0.0  # percent

    def to_dict(self) -> Dict[str, Any]:
        return {
            "user_id": self.user_id,
            "report_period": {
                "start": self.period_start,
                "end": self.period_end
            },
            "total_sessions": self.total_sessions,
            "average_integrity_score": self.average_integrity_score,
            "suspicious_events_count": self.suspicious_events_count,
            "flagged_sessions": [s.to_dict() for s in self.flagged_sessions],
            "recommendations": list(self.recommendations),
            "false_positive_rate": self.false_positive_rate
        }
