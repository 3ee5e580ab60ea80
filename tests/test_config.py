"""
Tests for engine configuration and environment overrides.
"""

import pytest
from pydantic import ValidationError

from redraft.config import EngineConfig


def test_defaults():
    config = EngineConfig()
    assert config.highlight_seconds == 3.0
    assert config.marker_open("s1") == '<mark data-suggestion-id="s1">'
    assert config.marker_close() == "</mark>"


def test_from_env():
    config = EngineConfig.from_env(
        {"REDRAFT_HIGHLIGHT_SECONDS": "0.5", "REDRAFT_MARKER_TAG": "span", "REDRAFT_ADD_SEPARATOR": "; "}
    )
    assert config.highlight_seconds == 0.5
    assert config.marker_close() == "</span>"
    assert config.add_separator == "; "


def test_from_env_ignores_invalid_seconds():
    config = EngineConfig.from_env({"REDRAFT_HIGHLIGHT_SECONDS": "soon"})
    assert config.highlight_seconds == 3.0


def test_negative_seconds_rejected():
    with pytest.raises(ValidationError):
        EngineConfig(highlight_seconds=-1)
