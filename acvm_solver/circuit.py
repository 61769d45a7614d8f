"""
Circuit model and bytecode format.

Bytecode is gzip-compressed canonical CBOR of a versioned map:

    {
      "version": 1,
      "current_witness_index": uint,
      "opcodes": [opcode, ...],
      "private_parameters": [uint, ...],
      "public_parameters": [uint, ...],
      "return_values": [uint, ...],
    }

Opcodes (discriminated by "type"):

    assert_zero   {"mul_terms": [[q, a, b]], "linear_combinations": [[q, w]], "q_c": q}
                  constrains  Σ q·wa·wb + Σ q·w + q_c == 0
    black_box     {"name": str, "inputs": [[w, num_bits]], "outputs": [w]}
    foreign_call  {"function": str, "inputs": [w], "outputs": [w]}

Coefficients `q` are 32-byte big-endian field blocks; witnesses are u32 ints.
Canonical CBOR keeps serialization byte-stable across runs.
"""

from __future__ import annotations

import gzip
import zlib
from dataclasses import dataclass, field
from typing import Any, Dict, FrozenSet, Iterable, List, Tuple, Union

import cbor2

from acvm_core.field import MAX_NUM_BITS, FieldElement
from acvm_core.witness import check_witness_index

from .errors import CircuitFormatError

CIRCUIT_VERSION = 1


# --------------------------------------------------------------------------------------
# Model
# --------------------------------------------------------------------------------------


@dataclass(frozen=True)
class Expression:
    mul_terms: Tuple[Tuple[FieldElement, int, int], ...] = ()
    linear_combinations: Tuple[Tuple[FieldElement, int], ...] = ()
    q_c: FieldElement = FieldElement(0)

    @classmethod
    def linear(cls, *terms: Tuple[Union[FieldElement, int], int], q_c: Union[FieldElement, int] = 0) -> "Expression":
        return cls(
            linear_combinations=tuple((FieldElement.coerce(q), w) for q, w in terms),
            q_c=FieldElement.coerce(q_c),
        )

    def witnesses(self) -> FrozenSet[int]:
        out = {w for _, w in self.linear_combinations}
        for _, a, b in self.mul_terms:
            out.update((a, b))
        return frozenset(out)


@dataclass(frozen=True)
class AssertZero:
    expr: Expression


@dataclass(frozen=True)
class FunctionInput:
    witness: int
    num_bits: int


@dataclass(frozen=True)
class BlackBoxFuncCall:
    name: str
    inputs: Tuple[FunctionInput, ...] = ()
    outputs: Tuple[int, ...] = ()


@dataclass(frozen=True)
class ForeignCall:
    function: str
    inputs: Tuple[int, ...] = ()
    outputs: Tuple[int, ...] = ()


Opcode = Union[AssertZero, BlackBoxFuncCall, ForeignCall]


@dataclass(frozen=True)
class Circuit:
    current_witness_index: int
    opcodes: Tuple[Opcode, ...] = ()
    private_parameters: FrozenSet[int] = field(default_factory=frozenset)
    public_parameters: FrozenSet[int] = field(default_factory=frozenset)
    return_values: FrozenSet[int] = field(default_factory=frozenset)

    def serialize_circuit(self) -> bytes:
        raw = cbor2.dumps(_circuit_to_obj(self), canonical=True)
        # mtime=0 keeps the gzip header reproducible.
        return gzip.compress(raw, mtime=0)

    @classmethod
    def deserialize_circuit(cls, data: bytes) -> "Circuit":
        try:
            raw = gzip.decompress(bytes(data))
        except (OSError, EOFError, zlib.error) as e:
            raise CircuitFormatError(f"bytecode is not gzip data: {e}") from e
        try:
            obj = cbor2.loads(raw)
        except (cbor2.CBORDecodeError, ValueError) as e:
            raise CircuitFormatError(f"bytecode is not CBOR: {e}") from e
        try:
            return _circuit_from_obj(obj)
        except CircuitFormatError:
            raise
        except (KeyError, TypeError, ValueError) as e:
            raise CircuitFormatError(f"invalid circuit structure: {e}") from e


# --------------------------------------------------------------------------------------
# CBOR mapping
# --------------------------------------------------------------------------------------


def _fe_out(q: FieldElement) -> bytes:
    return q.to_be_bytes()


def _fe_in(b: Any) -> FieldElement:
    if not isinstance(b, bytes):
        raise CircuitFormatError("coefficient must be a byte string")
    return FieldElement.from_be_bytes(b)


def _witness_in(w: Any) -> int:
    return check_witness_index(w)


def _witness_list_in(items: Any) -> Tuple[int, ...]:
    if not isinstance(items, list):
        raise CircuitFormatError("expected an array of witnesses")
    return tuple(_witness_in(w) for w in items)


def _str_in(s: Any, what: str) -> str:
    if not isinstance(s, str) or not s:
        raise CircuitFormatError(f"{what} must be a non-empty string")
    return s


def _opcode_to_obj(op: Opcode) -> Dict[str, Any]:
    if isinstance(op, AssertZero):
        e = op.expr
        return {
            "type": "assert_zero",
            "mul_terms": [[_fe_out(q), a, b] for q, a, b in e.mul_terms],
            "linear_combinations": [[_fe_out(q), w] for q, w in e.linear_combinations],
            "q_c": _fe_out(e.q_c),
        }
    if isinstance(op, BlackBoxFuncCall):
        return {
            "type": "black_box",
            "name": op.name,
            "inputs": [[i.witness, i.num_bits] for i in op.inputs],
            "outputs": list(op.outputs),
        }
    if isinstance(op, ForeignCall):
        return {
            "type": "foreign_call",
            "function": op.function,
            "inputs": list(op.inputs),
            "outputs": list(op.outputs),
        }
    raise TypeError(f"unknown opcode {type(op).__name__}")


def _opcode_from_obj(obj: Any) -> Opcode:
    if not isinstance(obj, dict):
        raise CircuitFormatError("opcode must be a map")
    kind = obj["type"]
    if kind == "assert_zero":
        mul = tuple((_fe_in(q), _witness_in(a), _witness_in(b)) for q, a, b in obj["mul_terms"])
        lin = tuple((_fe_in(q), _witness_in(w)) for q, w in obj["linear_combinations"])
        return AssertZero(Expression(mul, lin, _fe_in(obj["q_c"])))
    if kind == "black_box":
        inputs: List[FunctionInput] = []
        for w, bits in obj["inputs"]:
            if not isinstance(bits, int) or not 0 < bits <= MAX_NUM_BITS:
                raise CircuitFormatError(f"invalid num_bits {bits!r}")
            inputs.append(FunctionInput(_witness_in(w), bits))
        return BlackBoxFuncCall(
            _str_in(obj["name"], "black box name"), tuple(inputs), _witness_list_in(obj["outputs"])
        )
    if kind == "foreign_call":
        return ForeignCall(
            _str_in(obj["function"], "foreign call name"),
            _witness_list_in(obj["inputs"]),
            _witness_list_in(obj["outputs"]),
        )
    raise CircuitFormatError(f"unknown opcode type {kind!r}")


def _circuit_to_obj(c: Circuit) -> Dict[str, Any]:
    return {
        "version": CIRCUIT_VERSION,
        "current_witness_index": c.current_witness_index,
        "opcodes": [_opcode_to_obj(op) for op in c.opcodes],
        "private_parameters": sorted(c.private_parameters),
        "public_parameters": sorted(c.public_parameters),
        "return_values": sorted(c.return_values),
    }


def _circuit_from_obj(obj: Any) -> Circuit:
    if not isinstance(obj, dict):
        raise CircuitFormatError("circuit must be a map")
    version = obj.get("version")
    if version != CIRCUIT_VERSION:
        raise CircuitFormatError(f"unsupported circuit version {version!r}")
    opcodes = obj["opcodes"]
    if not isinstance(opcodes, list):
        raise CircuitFormatError("opcodes must be an array")
    return Circuit(
        current_witness_index=_witness_in(obj["current_witness_index"]),
        opcodes=tuple(_opcode_from_obj(op) for op in opcodes),
        private_parameters=frozenset(_witness_list_in(obj.get("private_parameters", []))),
        public_parameters=frozenset(_witness_list_in(obj.get("public_parameters", []))),
        return_values=frozenset(_witness_list_in(obj.get("return_values", []))),
    )


def circuit_from_opcodes(opcodes: Iterable[Opcode], **kwargs: Any) -> Circuit:
    """Build a Circuit, deriving current_witness_index from the highest witness used."""
    ops = tuple(opcodes)
    highest = 0
    for op in ops:
        if isinstance(op, AssertZero):
            used: Iterable[int] = op.expr.witnesses()
        elif isinstance(op, BlackBoxFuncCall):
            used = [i.witness for i in op.inputs] + list(op.outputs)
        else:
            used = list(op.inputs) + list(op.outputs)
        highest = max([highest, *used])
    return Circuit(current_witness_index=highest, opcodes=ops, **kwargs)


__all__ = [
    "CIRCUIT_VERSION",
    "Expression",
    "AssertZero",
    "FunctionInput",
    "BlackBoxFuncCall",
    "ForeignCall",
    "Opcode",
    "Circuit",
    "circuit_from_opcodes",
]
