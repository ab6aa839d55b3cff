from __future__ import annotations

import pytest

from mdshid.core.errors import InvalidArgument
from mdshid.protocol.sequence import SequenceTracker, SequenceVerdict, is_next_sequence


def test_first_packet_produces_no_verdict():
    t = SequenceTracker()
    assert t.last_sequence is None
    assert t.observe(17) is None
    assert t.last_sequence == 17


def test_in_order_iff_next_mod_32_for_all_pairs():
    """
    Property: after s1 then s2, verdict is IN_ORDER iff s2 == (s1+1) % 32.
    """
    for s1 in range(32):
        for s2 in range(32):
            t = SequenceTracker()
            t.observe(s1)
            verdict = t.observe(s2)
            expected = SequenceVerdict.IN_ORDER if s2 == (s1 + 1) % 32 else SequenceVerdict.DISCONTINUOUS
            assert verdict is expected, (s1, s2)
            assert t.last_sequence == s2


def test_wrap_31_to_0_is_in_order():
    t = SequenceTracker()
    t.observe(31)
    assert t.observe(0) is SequenceVerdict.IN_ORDER
    assert is_next_sequence(31, 0) is True


def test_scenario_5_6_9():
    t = SequenceTracker()
    assert t.observe(5) is None
    assert t.last_sequence == 5
    assert t.observe(6) is SequenceVerdict.IN_ORDER
    assert t.observe(9) is SequenceVerdict.DISCONTINUOUS
    assert t.last_sequence == 9
    assert t.in_order == 1
    assert t.discontinuities == 1


def test_duplicate_is_discontinuous_and_resyncs():
    t = SequenceTracker()
    t.observe(4)
    assert t.observe(4) is SequenceVerdict.DISCONTINUOUS
    # resynchronised on the duplicate
    assert t.observe(5) is SequenceVerdict.IN_ORDER


def test_reset_returns_to_unset():
    t = SequenceTracker()
    t.observe(3)
    t.reset()
    assert t.last_sequence is None
    assert t.observe(20) is None


@pytest.mark.parametrize("seq", [-1, 32, 255])
def test_out_of_range_sequence_raises(seq):
    t = SequenceTracker()
    with pytest.raises(InvalidArgument):
        t.observe(seq)
    assert t.last_sequence is None


def test_force_sets_without_verdict():
    t = SequenceTracker()
    t.force(10)
    assert t.expected_next() == 11
    assert t.observe(11) is SequenceVerdict.IN_ORDER
    assert t.discontinuities == 0
