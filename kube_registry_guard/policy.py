"""Registry whitelist policy."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Iterable


@dataclass(frozen=True)
class Policy:
    """Ordered, immutable set of registry prefixes an image may start with."""

    prefixes: tuple[str, ...] = ()

    @classmethod
    def from_prefixes(cls, prefixes: Iterable[str]) -> "Policy":
        return cls(prefixes=tuple(prefix for prefix in prefixes if prefix))

    @classmethod
    def from_string(cls, value: str, separator: str = ",") -> "Policy":
        """Build a policy from a separated list such as WHITELIST_REGISTRIES."""
        return cls.from_prefixes(part.strip() for part in value.split(separator))

    def matching_prefix(self, image: str) -> str | None:
        for prefix in self.prefixes:
            if image.startswith(prefix):
                return prefix
        return None

    def allows(self, image: str) -> bool:
        return self.matching_prefix(image) is not None

    def __str__(self) -> str:
        return "[" + ", ".join(self.prefixes) + "]"
