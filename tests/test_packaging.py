"""Tests for the distribution layout."""

from pathlib import Path

import pytest

tomllib = pytest.importorskip("tomllib")

ROOT = Path(__file__).resolve().parent.parent


def test_only_the_library_package_is_installed():
    with open(ROOT / "pyproject.toml", "rb") as f:
        config = tomllib.load(f)

    include = config["tool"]["setuptools"]["packages"]["find"]["include"]
    assert include == ["ethpm_registry*"]
