"""Guardian reporting"""

from .aggregator import ReportAggregator
from .reconciler import StaleSessionReconciler

__all__ = ["ReportAggregator", "StaleSessionReconciler"]
