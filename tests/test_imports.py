"""Each module must import on its own, in a fresh interpreter."""

import os
import subprocess
import sys
from pathlib import Path

import pytest


SRC_DIR = Path(__file__).resolve().parents[1] / "src"

MODULES = [
    "stockroom.core.auth.service",
    "stockroom.core.auth.routes",
    "stockroom.core.permissions",
    "stockroom.modules.rbac.services",
    "stockroom.modules.tenants.services",
    "stockroom.modules.users.services",
    "stockroom.api.router",
    "stockroom.main",
]


@pytest.mark.parametrize("module", MODULES)
def test_module_imports_standalone(module: str):
    """Test that importing the module first does not hit an import cycle."""
    pythonpath = os.pathsep.join([str(SRC_DIR), os.environ.get("PYTHONPATH", "")])
    env = {**os.environ, "PYTHONPATH": pythonpath}

    result = subprocess.run(
        [sys.executable, "-c", f"import {module}"],
        capture_output=True,
        text=True,
        env=env,
        timeout=60,
    )

    assert result.returncode == 0, result.stderr
