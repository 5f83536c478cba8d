# Area: Sync
"""
sketchroom._sync.optimistic — Optimistic vs confirmed values
============================================================

Local shadow values shown before the store confirms them. The display
value is always ``confirmed if confirmed is not None else optimistic``;
nothing else decides which one wins.
"""

from __future__ import annotations
from dataclasses import dataclass, replace
from typing import Generic, Optional, TypeVar

T = TypeVar("T")

# Deadline changes at or below this size are treated as poll noise.
JITTER_THRESHOLD_MS = 500


@dataclass(frozen=True)
class Reconciled(Generic[T]):
    """A value known optimistically, remotely, or both."""
    confirmed: Optional[T] = None
    optimistic: Optional[T] = None

    def resolve(self) -> Optional[T]:
        return self.confirmed if self.confirmed is not None else self.optimistic

    def with_confirmed(self, value: Optional[T]) -> "Reconciled[T]":
        return replace(self, confirmed=value)

    def with_optimistic(self, value: Optional[T]) -> "Reconciled[T]":
        return replace(self, optimistic=value)

    @property
    def is_confirmed(self) -> bool:
        return self.confirmed is not None


def stabilize(
    displayed: Optional[int],
    candidate: Optional[int],
    threshold_ms: int = JITTER_THRESHOLD_MS,
) -> Optional[int]:
    """
    Return the deadline to display given the one currently shown.

    The candidate replaces the displayed value only when it differs by
    more than ``threshold_ms``, or when nothing is displayed yet.
    """
    if candidate is None:
        return displayed
    if displayed is None:
        return candidate
    if abs(candidate - displayed) > threshold_ms:
        return candidate
    return displayed
