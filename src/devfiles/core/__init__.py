# devfiles/core/__init__.py
"""Core infrastructure modules for devfiles."""

from .tasks import AsyncTaskManager, submit_io

__all__ = ["AsyncTaskManager", "submit_io"]
