"""
Package version helpers.

- __version__: base semantic version shared by acvm_core, acvm_solver and acvm_rpc.
- git_describe(): `git describe --tags --dirty --always`, or None outside a checkout.
- version_with_git(): __version__ plus the git description, for logs and /version.
"""
from __future__ import annotations

import subprocess
from functools import lru_cache
from typing import Optional

__version__ = "0.1.0"


@lru_cache(maxsize=1)
def git_describe() -> Optional[str]:
    try:
        out = subprocess.check_output(
            ["git", "describe", "--tags", "--dirty", "--always"],
            stderr=subprocess.DEVNULL,
        )
        return out.decode("utf-8").strip() or None
    except Exception:
        return None


def version_with_git() -> str:
    desc = git_describe()
    return f"{__version__}+{desc}" if desc else __version__


__all__ = ["__version__", "git_describe", "version_with_git"]
