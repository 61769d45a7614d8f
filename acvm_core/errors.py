"""
acvm_core.errors
----------------

Error taxonomy for witness ingestion, the witness codec and circuit execution.

Design goals
------------
- One root `AcvmError` carrying a machine-stable `code`, a human `message`
  and optional JSON-safe `data`.
- Every concrete error belongs to exactly one `ErrorKind` (filesystem, decode,
  parse, execution, serialization) and names the request `stage` that failed,
  so the RPC layer can report *where* a request died without leaking internals.
- External solver failures are embedded as an opaque `cause`; their message is
  preserved for diagnostics but never interpreted here.

This module uses only stdlib so it can be imported by every other package.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from pathlib import Path
from typing import Any, Dict, Mapping, Optional


class ErrorKind(str, Enum):
    FILESYSTEM = "filesystem"
    DECODE = "decode"
    PARSE = "parse"
    EXECUTION = "execution"
    SERIALIZATION = "serialization"


class Stage(str, Enum):
    """Request stage reported on the wire when a request fails."""

    DECODE = "decode"
    CIRCUIT_DESERIALIZE = "circuit-deserialize"
    EXECUTE = "execute"
    FILESYSTEM = "filesystem"
    PARSE = "parse"
    SERIALIZE = "serialize"
    INTERNAL = "internal"


class AcvmErrorCode(str, Enum):
    # Filesystem
    MISSING_TOML_FILE = "ACVM/MISSING_TOML_FILE"
    INVALID_TOML_FILE = "ACVM/INVALID_TOML_FILE"
    MISSING_BYTECODE_FILE = "ACVM/MISSING_BYTECODE_FILE"
    MISSING_WITNESS_FILE = "ACVM/MISSING_WITNESS_FILE"
    INVALID_BYTECODE_FILE = "ACVM/INVALID_BYTECODE_FILE"
    INVALID_WITNESS_FILE = "ACVM/INVALID_WITNESS_FILE"
    OUTPUT_WITNESS_CREATION_FAILED = "ACVM/OUTPUT_WITNESS_CREATION_FAILED"
    OUTPUT_WITNESS_WRITE_FAILED = "ACVM/OUTPUT_WITNESS_WRITE_FAILED"

    # Decode
    MALFORMED_WITNESS = "ACVM/MALFORMED_WITNESS"
    CIRCUIT_DESERIALIZATION = "ACVM/CIRCUIT_DESERIALIZATION"

    # Parse
    WITNESS_INDEX = "ACVM/WITNESS_INDEX"
    WITNESS_VALUE = "ACVM/WITNESS_VALUE"

    # Execution / serialization
    CIRCUIT_EXECUTION = "ACVM/CIRCUIT_EXECUTION"
    WITNESS_SERIALIZATION = "ACVM/WITNESS_SERIALIZATION"


@dataclass(eq=False)
class AcvmError(Exception):
    """
    Root error for the witness pipeline.

    Attributes
    ----------
    code: str
        Machine-stable error code (see AcvmErrorCode).
    message: str
        Human hint suitable for logs and RPC error messages.
    data: dict
        Optional machine data (file names, paths, offsets). JSON-serializable.
    cause: Optional[BaseException]
        Wrapped original exception; not part of the wire shape by default.
    """

    code: str
    message: str
    data: Dict[str, Any] = field(default_factory=dict)
    cause: Optional[BaseException] = field(default=None, compare=False, repr=False)

    kind = ErrorKind.EXECUTION
    stage = Stage.INTERNAL

    def __post_init__(self) -> None:
        super().__init__(self.message)
        if self.cause is not None:
            self.__cause__ = self.cause

    def to_dict(self, include_cause: bool = False) -> Dict[str, Any]:
        """JSON-safe shape suitable for logs/RPC bridges."""
        out: Dict[str, Any] = {
            "code": str(self.code.value if isinstance(self.code, Enum) else self.code),
            "kind": self.kind.value,
            "stage": self.stage.value,
            "message": self.message,
            "data": _jsonmap(self.data),
        }
        if include_cause and self.cause is not None:
            out["cause"] = {
                "type": type(self.cause).__name__,
                "message": str(self.cause),
            }
        return out

    def __str__(self) -> str:
        return self.message


# ---------------------------------------------------------------------------
# Filesystem
# ---------------------------------------------------------------------------


class FilesystemError(AcvmError):
    kind = ErrorKind.FILESYSTEM
    stage = Stage.FILESYSTEM


class MissingTomlFile(FilesystemError):
    def __init__(self, file_name: str, path: Path | str) -> None:
        super().__init__(
            code=AcvmErrorCode.MISSING_TOML_FILE,
            message=f"cannot find input file {file_name} (expected at {path})",
            data={"file": file_name, "path": str(path)},
        )
        self.file_name = file_name
        self.path = Path(path)


class InvalidTomlFile(FilesystemError):
    def __init__(self, file_name: str, reason: str = "", cause: BaseException | None = None) -> None:
        msg = f"failed to parse input file {file_name}"
        if reason:
            msg += f": {reason}"
        super().__init__(
            code=AcvmErrorCode.INVALID_TOML_FILE,
            message=msg,
            data={"file": file_name},
            cause=cause,
        )
        self.file_name = file_name


class MissingBytecodeFile(FilesystemError):
    def __init__(self, file_name: str, path: Path | str) -> None:
        super().__init__(
            code=AcvmErrorCode.MISSING_BYTECODE_FILE,
            message=f"cannot find bytecode file {file_name} (expected at {path})",
            data={"file": file_name, "path": str(path)},
        )
        self.file_name = file_name
        self.path = Path(path)


class MissingWitnessFile(FilesystemError):
    def __init__(self, file_name: str, path: Path | str) -> None:
        super().__init__(
            code=AcvmErrorCode.MISSING_WITNESS_FILE,
            message=f"cannot find witness file {file_name} (expected at {path})",
            data={"file": file_name, "path": str(path)},
        )
        self.file_name = file_name
        self.path = Path(path)


class InvalidBytecodeFile(FilesystemError):
    def __init__(self, file_name: str, path: Path | str, cause: BaseException | None = None) -> None:
        super().__init__(
            code=AcvmErrorCode.INVALID_BYTECODE_FILE,
            message=f"cannot read bytecode file {file_name} at {path}",
            data={"file": file_name, "path": str(path)},
            cause=cause,
        )
        self.file_name = file_name
        self.path = Path(path)


class InvalidWitnessFile(FilesystemError):
    def __init__(self, file_name: str, path: Path | str, cause: BaseException | None = None) -> None:
        super().__init__(
            code=AcvmErrorCode.INVALID_WITNESS_FILE,
            message=f"cannot read witness file {file_name} at {path}",
            data={"file": file_name, "path": str(path)},
            cause=cause,
        )
        self.file_name = file_name
        self.path = Path(path)


class OutputWitnessCreationFailed(FilesystemError):
    def __init__(self, path: Path | str, cause: BaseException | None = None) -> None:
        super().__init__(
            code=AcvmErrorCode.OUTPUT_WITNESS_CREATION_FAILED,
            message=f"failed to create output witness file {path}",
            data={"path": str(path)},
            cause=cause,
        )
        self.path = Path(path)


class OutputWitnessWriteFailed(FilesystemError):
    def __init__(self, path: Path | str, cause: BaseException | None = None) -> None:
        super().__init__(
            code=AcvmErrorCode.OUTPUT_WITNESS_WRITE_FAILED,
            message=f"failed to write output witness file {path}",
            data={"path": str(path)},
            cause=cause,
        )
        self.path = Path(path)


# ---------------------------------------------------------------------------
# Decode
# ---------------------------------------------------------------------------


class DecodeError(AcvmError):
    kind = ErrorKind.DECODE
    stage = Stage.DECODE


class MalformedWitness(DecodeError):
    def __init__(self, reason: str, **data: Any) -> None:
        super().__init__(
            code=AcvmErrorCode.MALFORMED_WITNESS,
            message=f"malformed witness bytes: {reason}",
            data=_jsonmap(data),
        )
        self.reason = reason


class CircuitDeserializationError(DecodeError):
    stage = Stage.CIRCUIT_DESERIALIZE

    def __init__(self, cause: BaseException | None = None) -> None:
        super().__init__(
            code=AcvmErrorCode.CIRCUIT_DESERIALIZATION,
            message="failed to deserialize circuit: malformed circuit",
            cause=cause,
        )


# ---------------------------------------------------------------------------
# Parse
# ---------------------------------------------------------------------------


class InputParseError(AcvmError):
    kind = ErrorKind.PARSE
    stage = Stage.PARSE


class WitnessIndexError(InputParseError):
    def __init__(self, key: str) -> None:
        super().__init__(
            code=AcvmErrorCode.WITNESS_INDEX,
            message=f"error parsing witness index {key!r}",
            data={"key": key},
        )
        self.key = key


class WitnessValueError(InputParseError):
    def __init__(self, key: str, reason: str = "value is not a string") -> None:
        super().__init__(
            code=AcvmErrorCode.WITNESS_VALUE,
            message=f"error parsing value for witness {key!r}: {reason}",
            data={"key": key, "reason": reason},
        )
        self.key = key
        self.reason = reason


# ---------------------------------------------------------------------------
# Execution / serialization
# ---------------------------------------------------------------------------


class CircuitExecutionError(AcvmError):
    """A fault surfaced by the external solver; `cause` is the solver's own error."""

    kind = ErrorKind.EXECUTION
    stage = Stage.EXECUTE

    def __init__(self, cause: BaseException) -> None:
        super().__init__(
            code=AcvmErrorCode.CIRCUIT_EXECUTION,
            message=f"failed to execute circuit: {cause}",
            data={"solver_error": type(cause).__name__},
            cause=cause,
        )


class WitnessSerializationError(AcvmError):
    kind = ErrorKind.SERIALIZATION
    stage = Stage.SERIALIZE

    def __init__(self, reason: str, **data: Any) -> None:
        super().__init__(
            code=AcvmErrorCode.WITNESS_SERIALIZATION,
            message=f"failed to serialize witness: {reason}",
            data=_jsonmap(data),
        )


# ---------------------------------------------------------------------------
# Helpers
# ---------------------------------------------------------------------------


def _jsonmap(data: Mapping[str, Any]) -> Dict[str, Any]:
    return {k: _coerce_json(v) for k, v in data.items()}


def _coerce_json(v: Any) -> Any:
    # Keep JSON primitives; stringify the rest; hex-encode bytes.
    if v is None or isinstance(v, (bool, int, float, str, list, dict)):
        return v
    if isinstance(v, (bytes, bytearray)):
        return "0x" + bytes(v).hex()
    return str(v)


__all__ = [
    "ErrorKind",
    "Stage",
    "AcvmErrorCode",
    "AcvmError",
    "FilesystemError",
    "MissingTomlFile",
    "InvalidTomlFile",
    "MissingBytecodeFile",
    "MissingWitnessFile",
    "InvalidBytecodeFile",
    "InvalidWitnessFile",
    "OutputWitnessCreationFailed",
    "OutputWitnessWriteFailed",
    "DecodeError",
    "MalformedWitness",
    "CircuitDeserializationError",
    "InputParseError",
    "WitnessIndexError",
    "WitnessValueError",
    "CircuitExecutionError",
    "WitnessSerializationError",
]
