"""
Integrity Monitoring Module

Watches interaction telemetry of grade 3-6 learners during activities:
- Keystroke cadence (speed, metronomic timing, sudden shifts)
- Large, quick pastes
- Long inactivity gaps

Produces an Integrity Score (0-100) per session, age-appropriate quiz
feedback, and guardian reports.
"""

from .api import router

__all__ = ["router"]
