"""
Event records reported to the collector.
"""

import time
from dataclasses import dataclass, field
from types import MappingProxyType


@dataclass(frozen=True)
class Event:
    category: str
    key: str
    data: dict = field(default_factory=dict, hash=False)
    created: int = field(default_factory=lambda: int(time.time()))

    def __post_init__(self):
        # Own, read-only copy so the record can't change after it's built.
        object.__setattr__(self, "data", MappingProxyType(dict(self.data or {})))

    def as_dict(self):
        return {
            "category": self.category,
            "key": self.key,
            "data": dict(self.data),
            "created": self.created,
        }

    @classmethod
    def from_dict(cls, raw):
        kwargs = {"category": raw["category"], "key": raw["key"], "data": raw.get("data") or {}}
        if raw.get("created") is not None:
            kwargs["created"] = int(raw["created"])
        return cls(**kwargs)
