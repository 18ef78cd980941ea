"""
Apollo Classroom - Course navigation and learner progress.

This module provides:
- Async API client for topics, lessons and progress
- Reading order with previous/next navigation
- Cached progress views and optimistic progress writes
- Per-lesson hint reveal state
"""

from .client import CourseApiClient

from .navigator import (
    NavigationIndex,
    NavTarget,
    LessonNav,
    sort_modules,
)

from .hints import HintRevealState, HintBoard

from .views import ProgressViews, SUMMARY_KEY, topic_key

from .sync import (
    ProgressSyncController,
    ProgressSnapshot,
    PendingWrite,
    SaveState,
    SAVED_FEEDBACK_SECONDS,
)

from .session import CourseSession

__all__ = [
    # Client
    "CourseApiClient",
    # Navigation
    "NavigationIndex",
    "NavTarget",
    "LessonNav",
    "sort_modules",
    # Hints
    "HintRevealState",
    "HintBoard",
    # Progress
    "ProgressViews",
    "SUMMARY_KEY",
    "topic_key",
    "ProgressSyncController",
    "ProgressSnapshot",
    "PendingWrite",
    "SaveState",
    "SAVED_FEEDBACK_SECONDS",
    # Session
    "CourseSession",
]
