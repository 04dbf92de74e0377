"""
Module 03 - Epoch Clock
Registry time expressed as whole days since the Unix epoch.

Validity windows are measured on this calendar clock. Nullifier epoch ids
are a separate, caller-chosen round number (see core.nullifiers.scheme).
"""
from __future__ import annotations

import time
from typing import Protocol


SECONDS_PER_EPOCH: int = 24 * 3600

# One year of validity, in epoch units
DEFAULT_VALIDITY_EPOCHS: int = 365


def epoch_from_timestamp(timestamp: float) -> int:
    """Whole days elapsed since 1970-01-01T00:00:00Z."""
    if timestamp < 0:
        raise ValueError(f"timestamp must be non-negative, got {timestamp}")
    return int(timestamp // SECONDS_PER_EPOCH)


class EpochClock(Protocol):
    def current_epoch(self) -> int: ...


class SystemEpochClock:
    """Epoch clock backed by wall-clock time."""

    def current_epoch(self) -> int:
        return epoch_from_timestamp(time.time())


class FixedEpochClock:
    """
    Manually driven clock for tests and replays.

    Usage:
        clock = FixedEpochClock(20000)
        clock.advance(365)
    """

    def __init__(self, epoch: int = 0) -> None:
        if epoch < 0:
            raise ValueError(f"epoch must be non-negative, got {epoch}")
        self._epoch = epoch

    def current_epoch(self) -> int:
        return self._epoch

    def set(self, epoch: int) -> None:
        if epoch < 0:
            raise ValueError(f"epoch must be non-negative, got {epoch}")
        self._epoch = epoch

    def advance(self, epochs: int = 1) -> int:
        self.set(self._epoch + epochs)
        return self._epoch
