"""Detection rules"""

from .activity_detector import SuspiciousActivityDetector

__all__ = ["SuspiciousActivityDetector"]
