"""Pytest configuration and shared fixtures for treeconf tests."""

import tempfile
from pathlib import Path
from textwrap import dedent
from typing import Iterator

import pytest
from treeconf import Config

DATA_DIR = Path(__file__).parent / "data"


@pytest.fixture
def temp_dir() -> Iterator[Path]:
    """Create a temporary directory for test files."""
    with tempfile.TemporaryDirectory() as tmp_dir:
        yield Path(tmp_dir)


@pytest.fixture
def config() -> Config:
    """Create an empty Config instance."""
    return Config()


@pytest.fixture
def server_config() -> Config:
    """Create a Config loaded from the sample server configuration."""
    config = Config()
    config.read_file(DATA_DIR / "server.cfg")
    return config


def write_config_file(file_path: Path, text: str) -> None:
    """Write configuration text to a file.

    Args:
        file_path: Path to write file
        text: Configuration text  # (dedented before writing)
    """
    with open(file_path, "w") as f:
        f.write(dedent(text))
