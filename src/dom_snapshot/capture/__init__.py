"""Capture module - serializing live documents into static snapshots."""

from .media_queries import ALWAYS_MATCH, NEVER_MATCH, MediaQueryFreezer
from .orchestrator import DOCTYPE, capture, capture_sync, capture_with_stats
from .scroll import CaptureCache, ReplayScriptGenerator, resolve_path
from .serializer import TreeSerializer

__all__ = [
    "ALWAYS_MATCH",
    "NEVER_MATCH",
    "DOCTYPE",
    "CaptureCache",
    "MediaQueryFreezer",
    "ReplayScriptGenerator",
    "TreeSerializer",
    "capture",
    "capture_sync",
    "capture_with_stats",
    "resolve_path",
]
