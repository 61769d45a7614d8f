"""
Binary witness codec tests.

Covers the record layout, determinism across insertion orders, the
decode-side rejection rules (truncation, non-canonical field blocks) and a
property-based round trip over arbitrary witness maps.
"""

from __future__ import annotations

import random
import struct

import pytest
from hypothesis import given
from hypothesis import strategies as st

from acvm_core.codec import RECORD_SIZE, decode_witness_map, encode_witness_map, iter_records
from acvm_core.errors import MalformedWitness, Stage
from acvm_core.field import MODULUS, FieldElement
from acvm_core.witness import MAX_WITNESS_INDEX, WitnessMap

witness_maps = st.dictionaries(
    st.integers(min_value=0, max_value=MAX_WITNESS_INDEX),
    st.integers(min_value=0, max_value=MODULUS - 1),
    max_size=24,
)


def _record(index: int, value: int) -> bytes:
    return struct.pack(">I", index) + value.to_bytes(32, "big")


def test_record_layout():
    data = encode_witness_map(WitnessMap({1: 7}))
    assert len(data) == RECORD_SIZE == 36
    assert data == _record(1, 7)


def test_empty_map_encodes_to_nothing():
    assert encode_witness_map(WitnessMap()) == b""
    assert decode_witness_map(b"") == WitnessMap()


@given(witness_maps)
def test_round_trip(entries):
    w = WitnessMap(entries)
    assert decode_witness_map(encode_witness_map(w)) == w


def test_encoding_ignores_insertion_order():
    items = [(i * 3, i + 100) for i in range(32)]
    baseline = encode_witness_map(WitnessMap(items))
    rng = random.Random(1234)
    for _ in range(10):
        shuffled = items[:]
        rng.shuffle(shuffled)
        assert encode_witness_map(WitnessMap(shuffled)) == baseline


def test_records_are_sorted_by_index():
    data = encode_witness_map(WitnessMap({9: 1, 2: 1, 5: 1}))
    assert [i for i, _ in iter_records(data)] == [2, 5, 9]


@pytest.mark.parametrize("cut", [1, 35, 37, 71])
def test_truncated_input_is_malformed(cut):
    data = _record(0, 5) + _record(1, 5)
    with pytest.raises(MalformedWitness) as ei:
        decode_witness_map(data[:cut])
    assert ei.value.stage is Stage.DECODE


def test_non_canonical_block_is_rejected():
    data = _record(0, 1) + _record(3, MODULUS)
    with pytest.raises(MalformedWitness) as ei:
        decode_witness_map(data)
    assert ei.value.data["index"] == 3
    assert ei.value.data["offset"] == RECORD_SIZE


def test_repeated_index_last_write_wins():
    data = _record(4, 1) + _record(4, 2)
    assert decode_witness_map(data) == {4: FieldElement(2)}


def test_unsorted_input_is_accepted():
    data = _record(8, 1) + _record(2, 3)
    assert decode_witness_map(data) == {2: 3, 8: 1}
