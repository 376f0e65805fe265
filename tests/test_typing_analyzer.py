"""
Tests for TypingPatternAnalyzer and variance
"""
import pytest

from integrity_service.monitor.analysis import TypingPatternAnalyzer, variance, round_half_up


class TestVariance:
    """Population variance edge cases"""
    
    def test_empty(self):
        assert variance([]) == 0
    
    def test_single_value(self):
        assert variance([250]) == 0
    
    def test_constant_sequence(self):
        assert variance([120] * 20) == 0
    
    def test_population_not_sample(self):
        """Mean of squared deviations, divided by n"""
        assert variance([1, 2, 3, 4]) == pytest.approx(1.25)
        assert variance([100, 300]) == pytest.approx(10000)


class TestRounding:
    
    def test_half_rounds_up(self):
        assert round_half_up(2.5) == 3
        assert round_half_up(3.5) == 4
        assert round_half_up(2.4999) == 2


class TestTypingPatternAnalyzer:
    """Tests for pattern snapshots"""
    
    def test_average_speed_formula(self):
        """speed = round(60000 / (mean * 5))"""
        analyzer = TypingPatternAnalyzer()
        
        assert analyzer.compute_wpm([200] * 10) == 60
        assert analyzer.compute_wpm([2000] * 10) == 6
        assert analyzer.compute_wpm([100] * 20) == 120
    
    def test_speed_rounds_half_up(self):
        """60000 / (480 * 5) = 25.0, 60000 / (4800 * 5) = 2.5 -> 3"""
        analyzer = TypingPatternAnalyzer()
        
        assert analyzer.compute_wpm([480]) == 25
        assert analyzer.compute_wpm([4800]) == 3
    
    def test_empty_intervals(self):
        analyzer = TypingPatternAnalyzer()
        pattern = analyzer.analyze([])
        
        assert pattern.average_speed == 0
        assert pattern.pause_pattern == []
    
    def test_pause_pattern(self):
        """Only intervals strictly above 1000ms are pauses"""
        analyzer = TypingPatternAnalyzer()
        pattern = analyzer.analyze([200, 1000, 1001, 2500, 300])
        
        assert pattern.pause_pattern == [1001, 2500]
    
    def test_backspace_frequency_is_passed_through(self):
        analyzer = TypingPatternAnalyzer()
        pattern = analyzer.analyze([200, 250], backspace_frequency=4)
        
        assert pattern.backspace_frequency == 4
    
    def test_pattern_is_immutable(self):
        analyzer = TypingPatternAnalyzer()
        pattern = analyzer.analyze([200, 250])
        
        with pytest.raises(Exception):
            pattern.average_speed = 10
    
    def test_custom_timestamp(self):
        analyzer = TypingPatternAnalyzer()
        pattern = analyzer.analyze([200], timestamp="2024-01-01T00:00:00")
        
        assert pattern.timestamp == "2024-01-01T00:00:00"
