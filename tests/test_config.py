import pytest
from memory_match.config import Config, load_config


def test_defaults():
    config = load_config({})
    assert config == Config()
    assert config.match_delay == 0.5
    assert config.mismatch_delay == 1.0


def test_environment_overrides():
    config = load_config({
        "MEMORY_MATCH_PORT": "8080",
        "MEMORY_MATCH_PROGRESS": "/tmp/stars.json",
        "MEMORY_MATCH_MISMATCH_DELAY": "2.5",
        "MEMORY_MATCH_LOG_LEVEL": "debug",
    })
    assert config.port == 8080
    assert config.progress_path == "/tmp/stars.json"
    assert config.mismatch_delay == 2.5
    assert config.match_delay == 0.5
    assert config.log_level == "DEBUG"


@pytest.mark.parametrize("env", [
    {"MEMORY_MATCH_PORT": "eighty"},
    {"MEMORY_MATCH_MATCH_DELAY": "-1"},
    {"MEMORY_MATCH_TICK_INTERVAL": "0"},
])
def test_invalid_values(env):
    with pytest.raises(ValueError):
        load_config(env)
