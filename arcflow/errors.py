"""
Canonical exception types for arcflow.

Every error raised while processing an event derives from CornerError, so a
caller can choose a drop/abort policy with a single except clause. A rejected
event never leaves the time surface or the track set half-updated.
"""

from __future__ import annotations


class CornerError(Exception):
    """Base class for arcflow domain errors."""


class OutOfBounds(CornerError):
    """Event or query coordinates fall outside the configured sensor size."""

    def __init__(self, x: int, y: int, width: int, height: int):
        super().__init__(f"pixel ({x}, {y}) outside {width}x{height} surface")
        self.x, self.y, self.width, self.height = x, y, width, height


class NonMonotonicTime(CornerError):
    """Event timestamp is strictly older than the last accepted one."""

    def __init__(self, t: int, last_t: int):
        super().__init__(f"timestamp {t} precedes last accepted timestamp {last_t}")
        self.t, self.last_t = t, last_t


class ConfigError(CornerError, ValueError):
    """Invalid construction parameters (e.g., width <= 0, mismatched thresholds)."""


__all__ = ["CornerError", "OutOfBounds", "NonMonotonicTime", "ConfigError"]
