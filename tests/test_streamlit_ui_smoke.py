from __future__ import annotations

import subprocess
import sys
from pathlib import Path

import pytest


@pytest.mark.parametrize("package", ["app", "api", "calc_core", "tools"])
def test_package_compiles(package: str) -> None:
    repo_root = Path(__file__).resolve().parents[1]
    target = repo_root / package

    result = subprocess.run(
        [sys.executable, "-m", "compileall", "-q", str(target)],
        capture_output=True,
        text=True,
        check=False,
    )

    assert result.returncode == 0, (
        f"compileall failed for {package}/.\n"
        f"stdout:\n{result.stdout}\n"
        f"stderr:\n{result.stderr}"
    )


def test_every_page_has_render() -> None:
    from app import streamlit_app

    for key, module in streamlit_app.PAGES.items():
        assert key.startswith("nav.")
        assert callable(getattr(module, "render", None)), key
