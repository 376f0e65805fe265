"""Behavioral integrity monitoring service for young learners."""
