"""
Black-box function evaluation.

Black-box opcodes delegate to specialised routines instead of arithmetic
constraints. The solver hands each call to a `BlackBoxSolver`; the default
`Bn254BlackBoxSolver` implements the functions the reference engine supports:

    RANGE      (x; bits)          -> ()             x < 2**bits
    AND, XOR   (lhs, rhs; bits)   -> (out,)         bitwise over `bits` bits
    SHA256     (byte inputs)      -> 32 byte outputs
    BLAKE2S    (byte inputs)      -> 32 byte outputs
"""

from __future__ import annotations

import hashlib
from typing import Callable, Dict, List, Protocol, Sequence, Tuple

from acvm_core.field import FieldElement

from .errors import BlackBoxFunctionFailed

Inputs = Sequence[Tuple[FieldElement, int]]


class BlackBoxSolver(Protocol):
    def evaluate(self, name: str, inputs: Inputs, num_outputs: int) -> List[FieldElement]:
        ...


def _fits(value: FieldElement, bits: int) -> bool:
    return value.num_bits() <= bits


def _bytes_of(name: str, inputs: Inputs) -> bytes:
    out = bytearray()
    for value, bits in inputs:
        if bits > 8 or not _fits(value, 8):
            raise BlackBoxFunctionFailed(name, "inputs must be bytes")
        out.append(value.to_int())
    return bytes(out)


class Bn254BlackBoxSolver:
    """Stateless; one instance may serve any number of executions."""

    def __init__(self) -> None:
        self._funcs: Dict[str, Callable[[Inputs], List[FieldElement]]] = {
            "RANGE": self._range,
            "AND": self._and,
            "XOR": self._xor,
            "SHA256": self._sha256,
            "BLAKE2S": self._blake2s,
        }

    @property
    def names(self) -> List[str]:
        return sorted(self._funcs)

    def evaluate(self, name: str, inputs: Inputs, num_outputs: int) -> List[FieldElement]:
        fn = self._funcs.get(name.upper())
        if fn is None:
            raise BlackBoxFunctionFailed(name, "unsupported black box function")
        outputs = fn(inputs)
        if len(outputs) != num_outputs:
            raise BlackBoxFunctionFailed(
                name, f"expected {num_outputs} outputs, produced {len(outputs)}"
            )
        return outputs

    @staticmethod
    def _range(inputs: Inputs) -> List[FieldElement]:
        for value, bits in inputs:
            if not _fits(value, bits):
                raise BlackBoxFunctionFailed("RANGE", f"value does not fit in {bits} bits")
        return []

    @staticmethod
    def _binary(name: str, inputs: Inputs, op: Callable[[int, int], int]) -> List[FieldElement]:
        if len(inputs) != 2:
            raise BlackBoxFunctionFailed(name, "expected two inputs")
        (lhs, lbits), (rhs, rbits) = inputs
        bits = max(lbits, rbits)
        if not (_fits(lhs, bits) and _fits(rhs, bits)):
            raise BlackBoxFunctionFailed(name, f"inputs do not fit in {bits} bits")
        return [FieldElement(op(lhs.to_int(), rhs.to_int()))]

    def _and(self, inputs: Inputs) -> List[FieldElement]:
        return self._binary("AND", inputs, lambda a, b: a & b)

    def _xor(self, inputs: Inputs) -> List[FieldElement]:
        return self._binary("XOR", inputs, lambda a, b: a ^ b)

    @staticmethod
    def _sha256(inputs: Inputs) -> List[FieldElement]:
        digest = hashlib.sha256(_bytes_of("SHA256", inputs)).digest()
        return [FieldElement(b) for b in digest]

    @staticmethod
    def _blake2s(inputs: Inputs) -> List[FieldElement]:
        digest = hashlib.blake2s(_bytes_of("BLAKE2S", inputs)).digest()
        return [FieldElement(b) for b in digest]


__all__ = ["BlackBoxSolver", "Bn254BlackBoxSolver"]
