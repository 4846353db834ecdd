"""
Field schema types and the explicit schema cache.

A schema is an ordered list of FieldSpec. The cache is a plain object owned
by whoever serves requests; it is keyed by action slug and must be
invalidated when the template behind that slug is replaced or deleted.
"""
import threading
from dataclasses import dataclass, field
from typing import Callable, Dict, List, Optional, Sequence, Tuple

FIELD_TYPES = ("text", "date", "time", "number", "select", "image")


@dataclass(frozen=True)
class FieldSpec:
    name: str
    type: str = "text"
    label: str = ""
    section: str = "General"
    options: Tuple[str, ...] = ()
    computed: bool = False
    blank_allowed: bool = False
    placeholder: Optional[str] = None
    full_width: bool = False

    def __post_init__(self):
        if self.type not in FIELD_TYPES:
            raise ValueError(f"Unknown field type: {self.type}")

    @property
    def is_image(self) -> bool:
        return self.type == "image"


def required_names(schema: Sequence[FieldSpec]) -> List[str]:
    """Text variables the template needs, computed ones included."""
    return [f.name for f in schema if not f.is_image]


def input_fields(schema: Sequence[FieldSpec]) -> List[FieldSpec]:
    """Fields shown on the form (the backend fills computed ones)."""
    return [f for f in schema if not f.computed]


@dataclass
class SchemaCache:
    _entries: Dict[str, List[FieldSpec]] = field(default_factory=dict)
    _lock: threading.Lock = field(default_factory=threading.Lock, repr=False)

    def get_or_build(self, action_slug: str, build: Callable[[], List[FieldSpec]]) -> List[FieldSpec]:
        with self._lock:
            cached = self._entries.get(action_slug)
        if cached is not None:
            return list(cached)
        schema = build()
        with self._lock:
            self._entries[action_slug] = list(schema)
        return list(schema)

    def invalidate(self, action_slug: str) -> None:
        with self._lock:
            self._entries.pop(action_slug, None)

    def clear(self) -> None:
        with self._lock:
            self._entries.clear()

    def __contains__(self, action_slug: str) -> bool:
        with self._lock:
            return action_slug in self._entries
