"""
Tests for logging helpers
"""
import logging

from integrity_service.monitor.utils.logging import log_integrity_event, log_event_flagged
from integrity_service.utils.logging_config import setup_logging


class TestIntegrityLog:
    
    def test_event_format(self, caplog):
        caplog.set_level(logging.INFO)
        
        log_integrity_event("session_u1_1", "session_start", {"user_id": "u1", "activity": "quiz"})
        
        assert "[INTEGRITY] session=session_u1_1 event=session_start user_id=u1 activity=quiz" in caplog.text
    
    def test_flagged_events_are_warnings(self, caplog):
        caplog.set_level(logging.INFO)
        
        log_event_flagged("session_u1_1", "rapid_paste", "high", 70)
        
        record = caplog.records[-1]
        assert record.levelno == logging.WARNING
        assert "running_score=70" in record.getMessage()


class TestSetupLogging:
    
    def test_file_logging(self, tmp_path):
        root = logging.getLogger()
        saved_handlers, saved_level = root.handlers[:], root.level
        try:
            setup_logging("integrity-test", "DEBUG", log_to_file=True, log_dir=str(tmp_path))
            
            assert root.level == logging.DEBUG
            assert len(root.handlers) == 2
            assert (tmp_path / "integrity-test.log").exists()
            assert logging.getLogger("redis").level == logging.WARNING
        finally:
            for handler in root.handlers:
                handler.close()
            root.handlers = saved_handlers
            root.setLevel(saved_level)
    
    def test_no_log_dir_without_file_logging(self, tmp_path):
        root = logging.getLogger()
        saved_handlers, saved_level = root.handlers[:], root.level
        try:
            setup_logging("integrity-test", "INFO", log_dir=str(tmp_path / "logs"))
            
            assert not (tmp_path / "logs").exists()
        finally:
            root.handlers = saved_handlers
            root.setLevel(saved_level)
