"""
Binary witness codec.

Wire format
-----------
A witness map is encoded as a flat sequence of fixed-stride records, sorted
ascending by witness index:

    +----------------+--------------------------------+
    | index: u32 BE  | value: 32-byte BE field block  |   × N
    +----------------+--------------------------------+

There is no header; the record count is `len(data) // RECORD_SIZE`. An empty
map encodes to zero bytes. Decoding streams records front to back without
backtracking. Records are not required to be sorted on input; a repeated
index resolves last-write-wins so that every well-formed byte sequence maps
to one definite witness map.

Public API
----------
- encode_witness_map(w) -> bytes
- decode_witness_map(data) -> WitnessMap
- iter_records(data) -> Iterator[(index, FieldElement)]
"""

from __future__ import annotations

import struct
from typing import Iterator, Tuple

from .errors import MalformedWitness, WitnessSerializationError
from .field import FIELD_BYTES, FieldElement
from .witness import MAX_WITNESS_INDEX, WitnessMap

_INDEX = struct.Struct(">I")
RECORD_SIZE = _INDEX.size + FIELD_BYTES


def encode_witness_map(witness: WitnessMap) -> bytes:
    out = bytearray()
    for index, value in sorted(witness.items(), key=lambda kv: kv[0]):
        if not isinstance(index, int) or not 0 <= index <= MAX_WITNESS_INDEX:
            raise WitnessSerializationError("witness index out of range", index=str(index))
        if not isinstance(value, FieldElement):
            raise WitnessSerializationError(
                "witness value is not a field element", index=index, type=type(value).__name__
            )
        out += _INDEX.pack(index)
        out += value.to_be_bytes()
    return bytes(out)


def iter_records(data: bytes) -> Iterator[Tuple[int, FieldElement]]:
    """Yield (index, value) records; raises MalformedWitness on the first bad record."""
    view = memoryview(bytes(data))
    if len(view) % RECORD_SIZE != 0:
        raise MalformedWitness(
            f"length {len(view)} is not a multiple of the record size {RECORD_SIZE}",
            length=len(view),
            record_size=RECORD_SIZE,
        )
    for offset in range(0, len(view), RECORD_SIZE):
        (index,) = _INDEX.unpack_from(view, offset)
        block = view[offset + _INDEX.size : offset + RECORD_SIZE].tobytes()
        try:
            value = FieldElement.from_be_bytes(block)
        except ValueError as e:
            raise MalformedWitness(str(e), offset=offset, index=index) from e
        yield index, value


def decode_witness_map(data: bytes) -> WitnessMap:
    witness = WitnessMap()
    for index, value in iter_records(data):
        witness[index] = value
    return witness


__all__ = ["RECORD_SIZE", "encode_witness_map", "decode_witness_map", "iter_records"]
