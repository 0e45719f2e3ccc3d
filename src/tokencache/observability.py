"""Cache counters and schema-checked event records."""

from __future__ import annotations

import logging
import time
from dataclasses import dataclass, field
from typing import Any, Callable, Dict, Optional

from jsonschema import Draft7Validator

logger = logging.getLogger(__name__)

EVENT_TYPES = [
    "hit",
    "miss",
    "write",
    "write_failed",
    "stale",
    "invalidate",
    "store_error",
]

CACHE_EVENT_SCHEMA: Dict[str, Any] = {
    "$schema": "http://json-schema.org/draft-07/schema#",
    "type": "object",
    "required": ["event_type", "key", "timestamp"],
    "properties": {
        "event_type": {"type": "string", "enum": EVENT_TYPES},
        "key": {"type": "string"},
        "group": {"type": ["string", "null"]},
        "timestamp": {"type": "number", "minimum": 0},
        "detail": {"type": ["string", "null"]},
    },
    "additionalProperties": False,
}

_validator = Draft7Validator(CACHE_EVENT_SCHEMA)

_COUNTERS = {
    "hit": "hits",
    "miss": "misses",
    "write": "writes",
    "write_failed": "write_failures",
    "stale": "stale",
    "invalidate": "invalidations",
    "store_error": "store_errors",
}

EventSink = Callable[[Dict[str, Any]], None]


def validate_event(payload: Dict[str, Any]) -> None:
    errors = sorted(_validator.iter_errors(payload), key=lambda e: e.path)
    if errors:
        messages = ", ".join(error.message for error in errors)
        raise ValueError(f"cache event validation failed: {messages}")


@dataclass
class CacheEvent:
    event_type: str
    key: str
    group: Optional[str] = None
    detail: Optional[str] = None
    timestamp: float = field(default_factory=time.time)

    def to_dict(self) -> Dict[str, Any]:
        payload = {
            "event_type": self.event_type,
            "key": self.key,
            "group": self.group,
            "timestamp": self.timestamp,
            "detail": self.detail,
        }
        validate_event(payload)
        return payload


@dataclass
class CacheStats:
    """Per-process counters; not persisted and not shared between facades."""

    hits: int = 0
    misses: int = 0
    writes: int = 0
    write_failures: int = 0
    stale: int = 0
    invalidations: int = 0
    store_errors: int = 0
    sink: Optional[EventSink] = field(default=None, repr=False)

    def record(self, event_type: str, key: str, group: Optional[str] = None, detail: Optional[str] = None) -> None:
        attr = _COUNTERS[event_type]
        setattr(self, attr, getattr(self, attr) + 1)
        if self.sink is None:
            return
        try:
            self.sink(CacheEvent(event_type, key, group=group, detail=detail).to_dict())
        except Exception as e:
            logger.warning(f"Cache event sink error: {e}")

    def as_dict(self) -> Dict[str, Any]:
        total_requests = self.hits + self.misses
        hit_rate = (self.hits / total_requests * 100) if total_requests > 0 else 0
        return {
            "hits": self.hits,
            "misses": self.misses,
            "hit_rate_percent": round(hit_rate, 1),
            "total_requests": total_requests,
            "writes": self.writes,
            "write_failures": self.write_failures,
            "stale": self.stale,
            "invalidations": self.invalidations,
            "store_errors": self.store_errors,
        }
