"""Scoring modules"""

from .integrity_scorer import IntegrityScorer

__all__ = ["IntegrityScorer"]
