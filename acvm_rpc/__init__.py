"""
acvm_rpc: JSON-RPC execution service for ACVM circuits.

    from acvm_rpc.server import create_app
    from acvm_rpc.client import ExecutionClient

Server modules import FastAPI and prometheus_client; keep this package
initializer light so the client and CLI import cheaply.
"""

from acvm_core.version import __version__

from .config import PayloadMode, ServiceConfig, load

__all__ = ["PayloadMode", "ServiceConfig", "load", "__version__"]
