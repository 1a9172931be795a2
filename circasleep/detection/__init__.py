"""
Activity-driven wake detection.

Modules:
- wake_detector: Infers sleep sessions from visibility and interaction signals
"""

from .wake_detector import WakeDetector

__all__ = ["WakeDetector"]
