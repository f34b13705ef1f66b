"""CLI test fixtures: isolated working directory and config."""

import logging
import os
from collections.abc import Iterator
from pathlib import Path
from unittest.mock import patch

import pytest
import structlog


@pytest.fixture(autouse=True)
def _isolated_cli(tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> Iterator[None]:
    """Run every command from tmp_path with no global config and no env overrides."""
    monkeypatch.chdir(tmp_path)
    for name in list(os.environ):
        if name.startswith("CALLCHECK__"):
            monkeypatch.delenv(name)
    with patch("callcheck.config.loader.GLOBAL_CONFIG_PATH", tmp_path / "global.yaml"):
        yield
    # Handlers still point at the runner's closed streams
    logging.getLogger().handlers.clear()
    structlog.reset_defaults()
