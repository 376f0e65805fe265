"""Utility modules"""

from .logging import log_integrity_event

__all__ = ["log_integrity_event"]
