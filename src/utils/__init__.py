"""Utility modules for Inkwell.

Available utility modules (the most used are re-exported here):

- **errors** -- Exception hierarchy rooted at InkwellError; each class
  carries the HTTP status the API maps it to.
- **concurrency** -- Per-call semaphore throttling and fan-out helpers
  that keep batch store writes under a concurrency cap.
- **logging** -- structlog setup with a dual-renderer pattern: coloured
  console output in development, structured JSON in production.
- **slug** (not re-exported here) -- Slug derivation and per-owner
  ``-1``, ``-2`` disambiguation.
- **markdown** (not re-exported here) -- Markdown stripping and excerpt
  generation for post listings.
"""

# -- Domain exception hierarchy --------------------------------------------
from src.utils.errors import (
    ConfigurationError,
    ConflictError,
    InkwellError,
    NotFoundError,
    PermissionDeniedError,
    SlugExhaustionError,
    TransientStoreError,
)

# -- Async concurrency helpers ---------------------------------------------
from src.utils.concurrency import fan_out, throttled_gather

# -- Structured logging setup ----------------------------------------------
from src.utils.logging import configure_logging, get_logger

__all__ = [
    "ConfigurationError",
    "ConflictError",
    "InkwellError",
    "NotFoundError",
    "PermissionDeniedError",
    "SlugExhaustionError",
    "TransientStoreError",
    "configure_logging",
    "fan_out",
    "get_logger",
    "throttled_gather",
]
