"""
Module 03 - Epoch Clock

Days-since-Unix-epoch clock used for device validity windows.
"""

from .clock import (
    DEFAULT_VALIDITY_EPOCHS,
    SECONDS_PER_EPOCH,
    EpochClock,
    FixedEpochClock,
    SystemEpochClock,
    epoch_from_timestamp,
)

__all__ = [
    "DEFAULT_VALIDITY_EPOCHS",
    "SECONDS_PER_EPOCH",
    "EpochClock",
    "FixedEpochClock",
    "SystemEpochClock",
    "epoch_from_timestamp",
]
