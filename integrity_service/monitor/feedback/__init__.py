"""Student-facing feedback"""

from .feedback_generator import FeedbackGenerator

__all__ = ["FeedbackGenerator"]
