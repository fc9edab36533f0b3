"""Pytest configuration — ensure the repository root is on sys.path."""

import sys
from pathlib import Path

import pytest

# Add the repository root so `org_registry` and `registry_cli` are importable
ROOT_DIR = Path(__file__).resolve().parent.parent
if str(ROOT_DIR) not in sys.path:
    sys.path.insert(0, str(ROOT_DIR))

from org_registry.identity import ProjectIdentity  # noqa: E402


@pytest.fixture
def identity():
    return ProjectIdentity(
        repository_full_name="mhanyc/demo-cicd-terraform",
        short_name="demo-cicd-terraform",
        region="us-east-1",
    )
