"""Build orchestration: one-shot builds and watch sessions."""
from __future__ import annotations

from .orchestrator import BuildOptions, BuildResult, DevSession, build_once, watch

__all__ = ["BuildOptions", "BuildResult", "DevSession", "build_once", "watch"]
