# mdshid/protocol/sequence.py
from __future__ import annotations

from enum import Enum
from typing import Optional

from mdshid.core.errors import InvalidArgument

from .core.defs import SEQUENCE_MAX, SEQUENCE_MODULUS


class SequenceVerdict(str, Enum):
    IN_ORDER = "in_order"
    # Drops and duplicates/out-of-order arrivals are not distinguished.
    DISCONTINUOUS = "discontinuous"


def is_next_sequence(prev_seq: int, new_seq: int) -> bool:
    return new_seq == (prev_seq + 1) % SEQUENCE_MODULUS


class SequenceTracker:
    """
    Continuity check over the 5-bit stream sequence counter.

    States: Unset (last_sequence is None) and Tracking(n). Every observed value
    becomes the new last_sequence, whatever the verdict; there is no
    retransmission path, so verdicts are advisory.
    """

    def __init__(self) -> None:
        self._last: Optional[int] = None
        self.in_order = 0
        self.discontinuities = 0

    @property
    def last_sequence(self) -> Optional[int]:
        return self._last

    @property
    def is_tracking(self) -> bool:
        return self._last is not None

    def expected_next(self) -> Optional[int]:
        if self._last is None:
            return None
        return (self._last + 1) % SEQUENCE_MODULUS

    def observe(self, seq: int) -> Optional[SequenceVerdict]:
        """Record `seq`; returns None for the first packet after Unset."""
        seq = self._check(seq)
        prev = self._last
        self._last = seq

        if prev is None:
            return None

        if is_next_sequence(prev, seq):
            self.in_order += 1
            return SequenceVerdict.IN_ORDER

        self.discontinuities += 1
        return SequenceVerdict.DISCONTINUOUS

    def force(self, seq: int) -> None:
        """Overwrite last_sequence without producing a verdict."""
        self._last = self._check(seq)

    def reset(self) -> None:
        self._last = None

    @staticmethod
    def _check(seq: int) -> int:
        seq = int(seq)
        if not 0 <= seq <= SEQUENCE_MAX:
            raise InvalidArgument(f"sequence out of range: {seq} (0..{SEQUENCE_MAX})")
        return seq
