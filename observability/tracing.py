"""Simple span helper for recording block timings."""
from __future__ import annotations

import logging
import time
from contextlib import contextmanager
from typing import Any, Dict, Iterator, Optional

from .logger import log_event

logger = logging.getLogger(__name__)


@contextmanager
def span(name: str, session_id: Optional[str] = None, **fields: Any) -> Iterator[Dict[str, Any]]:
    """Time the block; the yielded dict receives ``ms`` on exit and may carry extra fields."""

    record: Dict[str, Any] = dict(fields)
    start = time.perf_counter()
    try:
        yield record
    finally:
        record["ms"] = int((time.perf_counter() - start) * 1000)
        if session_id is None:
            logger.debug("span=%s ms=%d", name, record["ms"])
        else:
            log_event("span", session_id, span=name, **record)


__all__ = ["span"]
