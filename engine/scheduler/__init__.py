"""
Scheduler Module

Cancellable periodic and debounced tasks.
"""

from .tasks import Debouncer, PeriodicTask

__all__ = [
    "Debouncer",
    "PeriodicTask",
]
