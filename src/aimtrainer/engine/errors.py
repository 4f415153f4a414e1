"""Exceptions raised by the adaptive difficulty engine."""

from __future__ import annotations


class EngineError(Exception):
    """Base class for engine failures the caller can recover from."""


class InvalidPerformanceError(EngineError, ValueError):
    """A session record was missing fields or carried non-finite numbers."""


class PatternError(EngineError, ValueError):
    """A pattern could not be generated from the given parameters."""
