"""Shared test fixtures and configuration."""

import os
import sys
from pathlib import Path

# Add certification_service/ to Python path so `from certifier.xxx` imports work
sys.path.insert(0, str(Path(__file__).resolve().parent.parent / "certification_service"))

import pytest

from certifier.config import CertifierSettings

os.environ["CERTIFIER_DEV_MODE"] = "true"


@pytest.fixture
def work_root(tmp_path: Path) -> Path:
    path = tmp_path / "work"
    path.mkdir()
    return path


@pytest.fixture
def settings(work_root: Path) -> CertifierSettings:
    return CertifierSettings(work_root=work_root)


@pytest.fixture
def repo_root(tmp_path: Path) -> Path:
    path = tmp_path / "repo"
    path.mkdir()
    return path
