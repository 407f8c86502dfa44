"""Observability utilities for the coaching services."""
from .logger import log_event, setup_logging
from .tracing import span

__all__ = ["log_event", "setup_logging", "span"]
