# tests/test_configuration.py

import json
import signal

import pytest

from cleanserve.configuration import ServeConfig, load_serve_config
from cleanserve.exceptions import ConfigError


@pytest.fixture
def yaml_config(tmp_path):
    path = tmp_path / "cleanserve.yaml"
    path.write_text(
        "server:\n"
        "  host: 0.0.0.0\n"
        "  port: 9090\n"
        "  directory: /srv/www\n"
        "shutdown:\n"
        "  timeout: 2.5\n"
        "  signals: [SIGTERM, HUP]\n"
        "logging:\n"
        "  level: debug\n"
        "  json: true\n"
    )
    return str(path)


def test_defaults_without_file():
    config = load_serve_config(env={})

    assert config == ServeConfig()
    assert config.signal_numbers() == (signal.SIGINT, signal.SIGTERM)


def test_load_yaml(yaml_config):
    config = load_serve_config(yaml_config, env={})

    assert config.host == "0.0.0.0"
    assert config.port == 9090
    assert config.directory == "/srv/www"
    assert config.timeout == 2.5
    assert config.signal_numbers() == (signal.SIGTERM, signal.SIGHUP)
    assert config.log_level == "DEBUG"
    assert config.log_json is True


def test_load_json(tmp_path):
    path = tmp_path / "cleanserve.json"
    path.write_text(json.dumps({"server": {"port": 8081}, "shutdown": {"timeout": None}}))

    config = load_serve_config(str(path), env={})

    assert config.port == 8081
    assert config.timeout is None


def test_empty_file_gives_defaults(tmp_path):
    path = tmp_path / "empty.yaml"
    path.write_text("")

    assert load_serve_config(str(path), env={}) == ServeConfig()


def test_env_overrides_file(yaml_config):
    env = {
        "CLEANSERVE_HOST": "127.0.0.2",
        "CLEANSERVE_PORT": "7000",
        "CLEANSERVE_TIMEOUT": "0",
        "CLEANSERVE_LOG_LEVEL": "warning",
    }

    config = load_serve_config(yaml_config, env=env)

    assert config.host == "127.0.0.2"
    assert config.port == 7000
    assert config.timeout == 0
    assert config.log_level == "WARNING"


@pytest.mark.parametrize("content, message", [
    ("server:\n  port: 70000\n", "Invalid port"),
    ("server:\n  port: http\n", "Invalid port"),
    ("shutdown:\n  timeout: -1\n", "Invalid shutdown timeout"),
    ("shutdown:\n  signals: [SIGNOPE]\n", "Unknown signal"),
    ("logging:\n  level: LOUD\n", "Invalid log level"),
    ("- just\n- a list\n", "must be a mapping"),
    ("server: [unclosed\n", "Could not parse"),
])
def test_invalid_config(tmp_path, content, message):
    path = tmp_path / "bad.yaml"
    path.write_text(content)

    with pytest.raises(ConfigError, match=message):
        load_serve_config(str(path), env={})


def test_missing_file():
    with pytest.raises(ConfigError, match="not found"):
        load_serve_config("/nonexistent/cleanserve.yaml", env={})


def test_invalid_env_value():
    with pytest.raises(ConfigError, match="Invalid port"):
        load_serve_config(env={"CLEANSERVE_PORT": "eighty"})
