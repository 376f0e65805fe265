"""
Integrity Logger - Logs monitoring events and results
"""

import logging
from typing import Dict, Any, Optional

logger = logging.getLogger(__name__)


def log_integrity_event(
    session_id: str,
    event_type: str,
    details: Optional[Dict[str, Any]] = None,
    level: str = "info"
):
    """
    Log an integrity monitoring event.
    
    Args:
        session_id: Activity or quiz session ID
        event_type: Type of event (session_start, event_flagged, session_end, etc.)
        details: Optional event details
        level: Log level (debug, info, warning, error)
    """
    message = f"[INTEGRITY] session={session_id} event={event_type}"
    
    if details:
        detail_str = " ".join(f"{k}={v}" for k, v in details.items())
        message += f" {detail_str}"
    
    if level == "debug":
        logger.debug(message)
    elif level == "warning":
        logger.warning(message)
    elif level == "error":
        logger.error(message)
    else:
        logger.info(message)


def log_session_start(session_id: str, user_id: str, activity: str):
    """Log session start event"""
    log_integrity_event(
        session_id=session_id,
        event_type="session_start",
        details={
            "user_id": user_id,
            "activity": activity
        }
    )


def log_session_end(session_id: str, integrity_score: int, events: int, minutes: int):
    """Log session end event"""
    log_integrity_event(
        session_id=session_id,
        event_type="session_end",
        details={
            "integrity_score": integrity_score,
            "suspicious_events": events,
            "minutes": minutes
        }
    )


def log_event_flagged(session_id: str, event_type: str, severity: str, score: int):
    """Log when a suspicious event is recorded"""
    log_integrity_event(
        session_id=session_id,
        event_type="event_flagged",
        details={
            "type": event_type,
            "severity": severity,
            "running_score": score
        },
        level="warning"
    )


def log_false_positive(session_id: str, event_id: str):
    """Log a guardian false-positive correction"""
    log_integrity_event(
        session_id=session_id,
        event_type="false_positive_marked",
        details={"event_id": event_id}
    )
