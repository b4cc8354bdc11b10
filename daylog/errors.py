# -*- coding: utf-8 -*-
"""Error taxonomy shared by the sync and annotation pipelines."""

from __future__ import annotations

from datetime import date
from typing import Optional


class DaylogError(Exception):
    """Base class for daylog failures."""


class TransientFetchError(DaylogError):
    """A single date could not be read from the ingestion source."""

    def __init__(self, day: date, message: str) -> None:
        super().__init__(f"{day.isoformat()}: {message}")
        self.day = day


class GenerationError(DaylogError):
    """The annotation generator failed for one request."""

    def __init__(self, message: str, *, status_code: Optional[int] = None) -> None:
        super().__init__(message)
        self.status_code = status_code


class ConfigurationError(DaylogError):
    """The annotation generator is not usable (e.g. no API key)."""
