"""
Witness maps: assignments of field elements to circuit variable slots.

A `WitnessMap` behaves like a dict keyed by witness index (u32). Keys are
validated on insertion, values are coerced to `FieldElement`, duplicate
inserts overwrite (last-write-wins). Iteration follows insertion order like a
dict; anything that must be reproducible (encoding, printing) goes through
`sorted_items()`.
"""

from __future__ import annotations

from typing import Dict, Iterable, Iterator, Mapping, MutableMapping, Tuple, Union

from .field import FieldElement

MAX_WITNESS_INDEX = 0xFFFFFFFF

FieldLike = Union[FieldElement, int, str]


def check_witness_index(index: int) -> int:
    """Return `index` if it is a valid u32 witness index, else raise."""
    if isinstance(index, bool) or not isinstance(index, int):
        raise TypeError(f"witness index must be int, got {type(index).__name__}")
    if index < 0 or index > MAX_WITNESS_INDEX:
        raise ValueError(f"witness index out of range: {index}")
    return index


class WitnessMap(MutableMapping[int, FieldElement]):
    __slots__ = ("_entries",)

    def __init__(
        self,
        entries: Union[Mapping[int, FieldLike], Iterable[Tuple[int, FieldLike]], None] = None,
    ) -> None:
        self._entries: Dict[int, FieldElement] = {}
        if entries is None:
            return
        items = entries.items() if isinstance(entries, Mapping) else entries
        for index, value in items:
            self[index] = value

    def __getitem__(self, index: int) -> FieldElement:
        return self._entries[index]

    def __setitem__(self, index: int, value: FieldLike) -> None:
        self._entries[check_witness_index(index)] = FieldElement.coerce(value)

    def __delitem__(self, index: int) -> None:
        del self._entries[index]

    def __iter__(self) -> Iterator[int]:
        return iter(self._entries)

    def __len__(self) -> int:
        return len(self._entries)

    def __contains__(self, index: object) -> bool:
        return index in self._entries

    def __eq__(self, other: object) -> bool:
        if isinstance(other, WitnessMap):
            return self._entries == other._entries
        if isinstance(other, Mapping):
            try:
                return self._entries == WitnessMap(other)._entries
            except (TypeError, ValueError):
                return False
        return NotImplemented

    def __repr__(self) -> str:
        body = ", ".join(f"{i}: {v.to_hex()}" for i, v in self.sorted_items())
        return f"WitnessMap({{{body}}})"

    def copy(self) -> "WitnessMap":
        out = WitnessMap()
        out._entries = dict(self._entries)
        return out

    def sorted_items(self) -> Iterator[Tuple[int, FieldElement]]:
        for index in sorted(self._entries):
            yield index, self._entries[index]

    def to_hex_dict(self) -> Dict[str, str]:
        """{"<index>": "0x…"} in ascending index order, for JSON/TOML output."""
        return {str(i): v.to_hex() for i, v in self.sorted_items()}


__all__ = ["WitnessMap", "MAX_WITNESS_INDEX", "check_witness_index"]
