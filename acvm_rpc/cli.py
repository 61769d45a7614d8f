"""
acvm-rpc: command-line interface for the ACVM execution service.

Commands:
  serve       run the JSON-RPC server (uvicorn)
  run         call a server in inline mode: witnessMap.bin + bytecode → output_witness.bin
  run-paths   call a server in path mode (file names relative to its working dir)
  execute     solve a circuit locally from a TOML input witness, no server needed
  encode      TOML input witness → binary witness file
  decode      binary witness file → listing or TOML

Examples:
  acvm-rpc serve --mode path --working-dir ./fixtures
  acvm-rpc run -C fixtures/identity
  acvm-rpc execute -C fixtures/identity --input-witness Prover.toml --print
  acvm-rpc decode fixtures/identity/output_witness.bin --toml
"""

from __future__ import annotations

from pathlib import Path
from typing import Optional

import typer

from acvm_core import logging as alog
from acvm_core.codec import encode_witness_map
from acvm_core.errors import AcvmError
from acvm_core.inputs import (read_bytecode_from_file, read_inputs_from_file,
                              read_witness_from_file, save_witness_to_dir,
                              write_inputs_toml)
from acvm_core.version import version_with_git
from acvm_core.witness import WitnessMap

from . import config as rpc_config
from .client import (DEFAULT_BYTECODE_FILE, DEFAULT_OUTPUT_FILE,
                     DEFAULT_WITNESS_FILE, ClientError, ExecutionClient)
from .dispatcher import execute_program_from_witness

app = typer.Typer(
    name="acvm-rpc",
    help="ACVM witness execution service and tools",
    no_args_is_help=True,
    add_completion=False,
)


def _fail(e: Exception) -> None:
    typer.echo(f"Error: {e}", err=True)
    raise typer.Exit(1)


def _listing(witness: WitnessMap) -> str:
    return "\n".join(f"{i}: {v.to_hex()}" for i, v in witness.sorted_items())


@app.callback()
def main_callback(
    log_level: Optional[str] = typer.Option(None, "--log-level", help="Logging level (env ACVM_LOG_LEVEL)"),
    json_logs: Optional[bool] = typer.Option(None, "--json-logs/--text-logs", help="Log format"),
) -> None:
    # `serve` configures logging itself; other commands only on request.
    if log_level is None and json_logs is None:
        return
    cfg = rpc_config.load()
    alog.configure(json=json_logs if json_logs is not None else cfg.log_json, level=log_level or cfg.log_level)


@app.command()
def version() -> None:
    """Print the package version."""
    typer.echo(version_with_git())


@app.command()
def serve(
    host: Optional[str] = typer.Option(None, "--host", help="Bind host (env ACVM_RPC_HOST)"),
    port: Optional[int] = typer.Option(None, "--port", help="Bind port (env ACVM_RPC_PORT)"),
    mode: Optional[rpc_config.PayloadMode] = typer.Option(
        None, "--mode", case_sensitive=False, help="Payload mode (env ACVM_RPC_PAYLOAD_MODE)"
    ),
    working_dir: Optional[Path] = typer.Option(
        None, "--working-dir", help="Default working directory in path mode (env ACVM_RPC_WORKING_DIR)"
    ),
    workers: Optional[int] = typer.Option(None, "--workers", min=1, help="Solver threads (env ACVM_RPC_WORKERS)"),
    resolver: Optional[str] = typer.Option(
        None, "--foreign-call-resolver", help="Foreign call resolver URL (env ACVM_FOREIGN_CALL_RESOLVER)"
    ),
) -> None:
    """Run the JSON-RPC execution server."""
    from .server import main as serve_main

    cfg = rpc_config.load().with_overrides(
        host=host,
        port=port,
        payload_mode=mode,
        working_dir=working_dir.expanduser() if working_dir else None,
        workers=workers,
        foreign_call_resolver=resolver,
    )
    serve_main(cfg)


@app.command()
def run(
    working_directory: Path = typer.Option(Path("."), "--working-directory", "-C", help="Directory holding the inputs"),
    witness: str = typer.Option(DEFAULT_WITNESS_FILE, "--witness", help="Binary input witness file"),
    bytecode: str = typer.Option(DEFAULT_BYTECODE_FILE, "--bytecode", help="Circuit bytecode file"),
    output: str = typer.Option(DEFAULT_OUTPUT_FILE, "--output", help="Output witness file"),
    rpc_url: Optional[str] = typer.Option(None, "--rpc-url", help="Service URL (env ACVM_RPC_URL)"),
) -> None:
    """Execute a circuit on a server in inline mode and write the solved witness."""
    try:
        with ExecutionClient(rpc_config.client_url(rpc_url)) as client:
            path = client.execute_from_dir(working_directory, witness, bytecode, output)
    except (ClientError, OSError) as e:
        _fail(e)
    typer.echo(str(path))


@app.command("run-paths")
def run_paths(
    output_witness: str = typer.Argument(..., help="Output witness name (written as <name>.bin)"),
    input_witness: str = typer.Argument(..., help="Input witness file (.toml or binary)"),
    bytecode: str = typer.Argument(..., help="Circuit bytecode file"),
    working_directory: Optional[str] = typer.Option(
        None, "--working-directory", "-C", help="Directory on the server (default: its configured one)"
    ),
    rpc_url: Optional[str] = typer.Option(None, "--rpc-url", help="Service URL (env ACVM_RPC_URL)"),
) -> None:
    """Execute a circuit on a server in path mode and print the output path."""
    try:
        with ExecutionClient(rpc_config.client_url(rpc_url)) as client:
            path = client.run_paths(output_witness, input_witness, bytecode, working_directory)
    except ClientError as e:
        _fail(e)
    typer.echo(path)


@app.command()
def execute(
    working_directory: Path = typer.Option(Path("."), "--working-directory", "-C", help="Directory holding the inputs"),
    input_witness: str = typer.Option("Prover.toml", "--input-witness", help="TOML input witness file"),
    bytecode: str = typer.Option(DEFAULT_BYTECODE_FILE, "--bytecode", help="Circuit bytecode file"),
    output_witness: Optional[str] = typer.Option(None, "--output-witness", help="Write the solved witness as <name>.bin"),
    print_witness: bool = typer.Option(False, "--print", help="Print the solved witness"),
    resolver: Optional[str] = typer.Option(
        None, "--foreign-call-resolver", help="Foreign call resolver URL (env ACVM_FOREIGN_CALL_RESOLVER)"
    ),
) -> None:
    """Solve a circuit locally."""
    cfg = rpc_config.load()
    try:
        inputs = read_inputs_from_file(working_directory, input_witness)
        circuit = read_bytecode_from_file(working_directory, bytecode)
        solved = execute_program_from_witness(inputs, circuit, resolver or cfg.foreign_call_resolver)
        path = save_witness_to_dir(solved, output_witness, working_directory) if output_witness else None
    except AcvmError as e:
        _fail(e)

    if print_witness:
        typer.echo(_listing(solved))
    if path is not None:
        typer.echo(f"Witness saved to {path}")


@app.command()
def encode(
    input_toml: Path = typer.Argument(..., help="TOML input witness"),
    output: Path = typer.Argument(..., help="Binary witness file to write"),
) -> None:
    """Convert a TOML input witness into the binary witness encoding."""
    try:
        witness = read_inputs_from_file(input_toml.parent, input_toml.name)
        output.write_bytes(encode_witness_map(witness))
    except (AcvmError, OSError) as e:
        _fail(e)
    typer.echo(f"{len(witness)} witnesses → {output}")


@app.command()
def decode(
    input_file: Path = typer.Argument(..., help="Binary witness file"),
    toml: bool = typer.Option(False, "--toml", help="Emit TOML instead of a listing"),
) -> None:
    """Print a binary witness file."""
    try:
        witness = read_witness_from_file(input_file.parent, input_file.name)
    except AcvmError as e:
        _fail(e)
    typer.echo(write_inputs_toml(witness) if toml else _listing(witness), nl=not toml)


__all__ = ["app"]


if __name__ == "__main__":
    app()
