"""Route prefix to time-to-live resolution for cached responses."""

from __future__ import annotations

from collections.abc import Mapping
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from .config_loader import Config


class TtlPolicy:
    """
    Resolve a TTL for a request path by longest matching prefix.

    Rules are sorted once, longest prefix first, so resolution is a linear
    scan that stops at the first match. Duplicate prefixes cannot occur
    because rules come from a mapping.
    """

    def __init__(self, ttl_by_prefix: Mapping[str, float], default_ttl_seconds: float) -> None:
        if default_ttl_seconds <= 0:
            raise ValueError("default_ttl_seconds must be > 0")
        for prefix, ttl in ttl_by_prefix.items():
            if not prefix:
                raise ValueError("TTL prefixes must be non-empty")
            if ttl <= 0:
                raise ValueError(f"TTL for prefix {prefix!r} must be > 0, got {ttl}")

        self.default_ttl_seconds = float(default_ttl_seconds)
        self._rules: list[tuple[str, float]] = sorted(
            ((prefix, float(ttl)) for prefix, ttl in ttl_by_prefix.items()),
            key=lambda rule: len(rule[0]),
            reverse=True,
        )

    @classmethod
    def from_config(cls, settings: Config) -> TtlPolicy:
        return cls(settings.cache_ttl_by_prefix, settings.cache_default_ttl)

    @property
    def rules(self) -> list[tuple[str, float]]:
        return list(self._rules)

    def resolve(self, path: str) -> float:
        """Return the TTL in seconds for ``path``."""
        for prefix, ttl in self._rules:
            if path.startswith(prefix):
                return ttl
        return self.default_ttl_seconds


__all__ = ["TtlPolicy"]
