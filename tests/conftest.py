"""Shared test fixtures."""

import shutil
import tempfile

import pytest

from TexRepack.config import ExportConfig


@pytest.fixture
def tmp_dir():
    d = tempfile.mkdtemp()
    yield d
    shutil.rmtree(d, ignore_errors=True)


@pytest.fixture
def default_config():
    return ExportConfig()
