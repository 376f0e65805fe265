"""
Feedback Generator - Age-appropriate messages for quiz responses

Messages are shown to 8-11 year olds while they work, so every template
is encouraging and never reads as an accusation.
"""

import logging
from typing import List, Optional

from ..models import AutomatedFeedback, Confidence, FeedbackType, Priority, QuizResponse
from ..thresholds import IntegrityThresholds

logger = logging.getLogger(__name__)


class FeedbackGenerator:
    """Generate automated feedback from a single quiz response"""
    
    TEMPLATES = {
        "slow_down": "Take your time to think about your answer! Good thinking takes time. ⏰",
        "careful_thinking": "Great job thinking carefully about this question! 🤔",
        "explain": "Try explaining your answer! Can you tell me more about your thinking?",
        "persistence": "I can see you're working hard to get the right answer! Keep thinking! 💪",
        "double_check": "You wrote that answer very quickly! Double-check that it shows your best thinking. ✨",
    }
    
    def __init__(self, templates: Optional[dict] = None, thresholds: Optional[IntegrityThresholds] = None):
        self.thresholds = thresholds or IntegrityThresholds()
        self.templates = self.TEMPLATES.copy()
        if templates:
            self.templates.update(templates)
    
    def _feedback(self, kind: FeedbackType, key: str, priority: Priority, question_id: str) -> AutomatedFeedback:
        return AutomatedFeedback(
            type=kind,
            message=self.templates[key],
            priority=priority,
            question_id=question_id
        )
    
    def generate_quiz_feedback(self, response: QuizResponse, grade: int = None) -> List[AutomatedFeedback]:
        """
        Generate feedback for a quiz response.
        
        Args:
            response: The recorded response
            grade: Learner grade (templates are shared across grades 3-6)
            
        Returns:
            Zero or more feedback messages tied to the response's question
        """
        t = self.thresholds
        feedback = []
        qid = response.question_id
        
        # Time-based feedback
        if response.time_spent < t.feedback_quick_seconds:
            feedback.append(self._feedback(FeedbackType.SUGGESTION, "slow_down", Priority.MEDIUM, qid))
        elif response.time_spent > t.feedback_long_seconds:
            feedback.append(self._feedback(FeedbackType.ENCOURAGEMENT, "careful_thinking", Priority.LOW, qid))
        
        # Confidence-based feedback
        if response.confidence == Confidence.LOW:
            feedback.append(self._feedback(FeedbackType.QUESTION, "explain", Priority.MEDIUM, qid))
        
        # Revision pattern feedback
        if response.revision_count > t.feedback_many_revisions:
            feedback.append(self._feedback(FeedbackType.ENCOURAGEMENT, "persistence", Priority.LOW, qid))
        elif response.revision_count == 0 and len(response.answer) > t.feedback_long_answer_chars:
            feedback.append(self._feedback(FeedbackType.SUGGESTION, "double_check", Priority.MEDIUM, qid))
        
        logger.debug(f"Generated {len(feedback)} feedback messages for question {qid} (grade {grade})")
        return feedback
