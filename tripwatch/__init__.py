"""Tripwatch: live trip tracking and proactive alert engine."""

__version__ = "0.1.0"
