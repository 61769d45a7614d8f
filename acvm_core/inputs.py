"""
Witness ingestion from the working directory.

Input witness documents are TOML tables mapping witness indices to hex field
elements:

    1 = "0x05"
    "2" = "0x0000000000000000000000000000000000000000000000000000000000000007"

Parsing is fail-fast: the first bad key or value aborts the whole document
and no partial map is returned.

Also hosts the small filesystem helpers shared by the service, the client and
the CLI: reading bytecode and binary witnesses, and persisting output
witnesses.
"""

from __future__ import annotations

import logging
import re
import tomllib
from pathlib import Path
from typing import Any, Mapping, Union

from .codec import decode_witness_map, encode_witness_map
from .errors import (
    InvalidBytecodeFile,
    InvalidTomlFile,
    InvalidWitnessFile,
    MissingBytecodeFile,
    MissingTomlFile,
    MissingWitnessFile,
    OutputWitnessCreationFailed,
    OutputWitnessWriteFailed,
    WitnessIndexError,
    WitnessValueError,
)
from .field import FieldElement
from .witness import MAX_WITNESS_INDEX, WitnessMap

log = logging.getLogger(__name__)

PathLike = Union[str, Path]

WITNESS_EXT = ".bin"

_DECIMAL = re.compile(r"\+?[0-9]+")


def parse_witness_index(key: str) -> int:
    token = key.strip()
    if not _DECIMAL.fullmatch(token):
        raise WitnessIndexError(key)
    index = int(token)
    if index > MAX_WITNESS_INDEX:
        raise WitnessIndexError(key)
    return index


def witness_map_from_table(table: Mapping[str, Any]) -> WitnessMap:
    witnesses = WitnessMap()
    for key, value in table.items():
        index = parse_witness_index(key)
        if not isinstance(value, str):
            raise WitnessValueError(key)
        try:
            field = FieldElement.from_hex(value)
        except ValueError as e:
            raise WitnessValueError(key, reason=str(e)) from e
        witnesses[index] = field
    return witnesses


def parse_inputs(text: str, file_name: str = "<string>") -> WitnessMap:
    try:
        table = tomllib.loads(text)
    except tomllib.TOMLDecodeError as e:
        raise InvalidTomlFile(file_name, reason=str(e), cause=e) from e
    return witness_map_from_table(table)


def read_inputs_from_file(working_directory: PathLike, file_name: str) -> WitnessMap:
    file_path = Path(working_directory) / file_name
    if not file_path.exists():
        raise MissingTomlFile(file_name, file_path.resolve())
    try:
        text = file_path.read_text(encoding="utf-8")
    except (OSError, UnicodeDecodeError) as e:
        raise InvalidTomlFile(file_name, reason=str(e), cause=e) from e
    witnesses = parse_inputs(text, file_name)
    log.debug("read %d witness inputs from %s", len(witnesses), file_path)
    return witnesses


def write_inputs_toml(witness: WitnessMap) -> str:
    """Render a witness map as an input document (ascending index order)."""
    return "".join(f'"{i}" = "{v.to_hex()}"\n' for i, v in witness.sorted_items())


def read_bytecode_from_file(working_directory: PathLike, file_name: str) -> bytes:
    file_path = Path(working_directory) / file_name
    if not file_path.exists():
        raise MissingBytecodeFile(file_name, file_path.resolve())
    try:
        return file_path.read_bytes()
    except OSError as e:
        raise InvalidBytecodeFile(file_name, file_path.resolve(), cause=e) from e


def read_witness_from_file(working_directory: PathLike, file_name: str) -> WitnessMap:
    """Read an input witness: TOML documents go through the parser, anything else is binary."""
    file_path = Path(working_directory) / file_name
    if file_path.suffix.lower() == ".toml":
        return read_inputs_from_file(working_directory, file_name)
    if not file_path.exists():
        raise MissingWitnessFile(file_name, file_path.resolve())
    try:
        buf = file_path.read_bytes()
    except OSError as e:
        raise InvalidWitnessFile(file_name, file_path.resolve(), cause=e) from e
    return decode_witness_map(buf)


def output_witness_path(witness_name: str, witness_dir: PathLike) -> Path:
    return (Path(witness_dir) / witness_name).with_suffix(WITNESS_EXT)


def save_witness_to_dir(witness: WitnessMap, witness_name: str, witness_dir: PathLike) -> Path:
    """Encode `witness` and write it to `<witness_dir>/<witness_name>.bin`; returns the path."""
    witness_path = output_witness_path(witness_name, witness_dir)
    buf = encode_witness_map(witness)
    try:
        witness_path.parent.mkdir(parents=True, exist_ok=True)
        handle = witness_path.open("wb")
    except OSError as e:
        raise OutputWitnessCreationFailed(witness_path, cause=e) from e
    try:
        with handle:
            handle.write(buf)
    except OSError as e:
        raise OutputWitnessWriteFailed(witness_path, cause=e) from e
    log.debug("wrote %d bytes of witness to %s", len(buf), witness_path)
    return witness_path


__all__ = [
    "WITNESS_EXT",
    "parse_witness_index",
    "witness_map_from_table",
    "parse_inputs",
    "read_inputs_from_file",
    "write_inputs_toml",
    "read_bytecode_from_file",
    "read_witness_from_file",
    "output_witness_path",
    "save_witness_to_dir",
]
