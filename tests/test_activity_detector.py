"""
Tests for SuspiciousActivityDetector
"""
import pytest

from integrity_service.monitor.detection import SuspiciousActivityDetector
from integrity_service.monitor.models import EventType, Severity
from integrity_service.monitor.thresholds import IntegrityThresholds, GradeThresholds

from conftest import make_pattern


class TestTypingRules:
    """Typing cadence rules"""
    
    def test_natural_typing_not_flagged(self):
        """Varied intervals at a grade-4 pace"""
        detector = SuspiciousActivityDetector()
        pattern = make_pattern([300, 450, 280, 900, 350, 500, 410, 620, 330, 700])
        
        assert detector.check_typing(pattern, [pattern], grade=4) == []
    
    def test_unusual_speed(self):
        """Grade 4 max is 35, so anything above 52.5 is flagged high"""
        detector = SuspiciousActivityDetector()
        pattern = make_pattern([150, 250] * 5)  # mean 200 -> 60 WPM
        
        events = detector.check_typing(pattern, [pattern], grade=4)
        
        assert [e.type for e in events] == [EventType.UNUSUAL_SPEED]
        assert events[0].severity == Severity.HIGH
        assert "grade 4" in events[0].description
    
    def test_speed_limit_is_grade_calibrated(self):
        """60 WPM is within 1.5x of grade 6's max of 55"""
        detector = SuspiciousActivityDetector()
        pattern = make_pattern([150, 250] * 5)
        
        assert detector.check_typing(pattern, [pattern], grade=6) == []
    
    def test_unknown_grade_uses_grade_four(self):
        detector = SuspiciousActivityDetector()
        pattern = make_pattern([150, 250] * 5)
        
        events = detector.check_typing(pattern, [pattern], grade=9)
        
        assert len(events) == 1
        assert "grade 4" in events[0].description
        assert "8-35 WPM" in events[0].context
    
    def test_metronomic_typing(self):
        """Zero variance above 20 WPM looks scripted"""
        detector = SuspiciousActivityDetector()
        pattern = make_pattern([400] * 20)  # 30 WPM
        
        events = detector.check_typing(pattern, [pattern], grade=4)
        
        assert [e.type for e in events] == [EventType.PATTERN_BREAK]
        assert events[0].severity == Severity.MEDIUM
    
    def test_metronomic_but_slow_not_flagged(self):
        detector = SuspiciousActivityDetector()
        pattern = make_pattern([2000] * 20)  # 6 WPM
        
        assert detector.check_typing(pattern, [pattern], grade=4) == []
    
    def test_fast_and_metronomic_both_fire(self):
        detector = SuspiciousActivityDetector()
        pattern = make_pattern([100] * 20)  # 120 WPM
        
        events = detector.check_typing(pattern, [pattern], grade=4)
        
        assert {e.type for e in events} == {EventType.UNUSUAL_SPEED, EventType.PATTERN_BREAK}
    
    def test_sudden_shift_needs_three_patterns(self):
        detector = SuspiciousActivityDetector()
        slow = make_pattern([1500, 2500] * 5, speed=6)
        fast = make_pattern([300, 500] * 5, speed=50)
        
        assert detector.check_typing(fast, [slow, fast], grade=6) == []
    
    def test_sudden_shift(self):
        """|50 - 6| = 44 > 35 * 0.8 = 28"""
        detector = SuspiciousActivityDetector()
        slow = make_pattern([1500, 2500] * 5, speed=6)
        mid = make_pattern([900, 1100] * 5, speed=12)
        fast = make_pattern([300, 500] * 5, speed=50)
        
        events = detector.check_typing(fast, [slow, mid, fast], grade=4)
        shifts = [e for e in events if e.description.startswith("Sudden change")]
        
        assert len(shifts) == 1
        assert shifts[0].type == EventType.PATTERN_BREAK
        assert "from 6 to 50" in shifts[0].context
    
    def test_sudden_shift_uses_last_three_only(self):
        detector = SuspiciousActivityDetector()
        old = make_pattern([1500, 2500] * 5, speed=6)
        a = make_pattern([700, 900] * 5, speed=15)
        b = make_pattern([600, 800] * 5, speed=17)
        c = make_pattern([500, 700] * 5, speed=20)
        
        events = detector.check_typing(c, [old, a, b, c], grade=4)
        
        assert not any(e.description.startswith("Sudden change") for e in events)


class TestPasteRule:
    
    def test_medium_paste(self):
        detector = SuspiciousActivityDetector()
        event = detector.check_paste(60, 1500)
        
        assert event.type == EventType.RAPID_PASTE
        assert event.severity == Severity.MEDIUM
    
    def test_high_paste(self):
        detector = SuspiciousActivityDetector()
        event = detector.check_paste(250, 500)
        
        assert event.severity == Severity.HIGH
        assert "250 characters" in event.description
    
    def test_small_paste_ignored(self):
        detector = SuspiciousActivityDetector()
        
        assert detector.check_paste(50, 100) is None
    
    def test_slow_paste_ignored(self):
        detector = SuspiciousActivityDetector()
        
        assert detector.check_paste(500, 2000) is None


class TestInactivityRule:
    
    def test_medium_gap(self):
        detector = SuspiciousActivityDetector()
        event = detector.check_inactivity(400000)
        
        assert event.type == EventType.TIME_GAP
        assert event.severity == Severity.MEDIUM
        assert "7 minutes" in event.description
    
    def test_high_gap(self):
        detector = SuspiciousActivityDetector()
        
        assert detector.check_inactivity(1000000).severity == Severity.HIGH
    
    def test_short_gap_ignored(self):
        detector = SuspiciousActivityDetector()
        
        assert detector.check_inactivity(100000) is None
        assert detector.check_inactivity(300000) is None


class TestInjectedThresholds:
    
    def test_custom_grade_table(self):
        thresholds = IntegrityThresholds(
            grades={4: GradeThresholds(min_wpm=1, max_wpm=100, normal_pause_ms=1800)}
        )
        detector = SuspiciousActivityDetector(thresholds)
        pattern = make_pattern([150, 250] * 5)
        
        assert detector.check_typing(pattern, [pattern], grade=4) == []
    
    def test_default_table_is_monotonic(self):
        thresholds = IntegrityThresholds()
        rows = [thresholds.for_grade(g) for g in (3, 4, 5, 6)]
        
        for lower, upper in zip(rows, rows[1:]):
            assert upper.min_wpm > lower.min_wpm
            assert upper.max_wpm > lower.max_wpm
            assert upper.normal_pause_ms < lower.normal_pause_ms
