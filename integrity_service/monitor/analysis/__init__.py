"""Typing analysis modules"""

from .typing_analyzer import TypingPatternAnalyzer, variance, round_half_up

__all__ = ["TypingPatternAnalyzer", "variance", "round_half_up"]
