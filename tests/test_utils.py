import json
import logging
import logging.handlers

import pytest

from utils import DEFAULT_CONFIG, load_config, merge_config, setup_logging


def test_load_config_fills_missing_sections(tmp_path):
    path = tmp_path / "config.json"
    path.write_text(json.dumps({"simulation_parameters": {"particle_count": 50}}))

    config = load_config(str(path))
    assert config["simulation_parameters"]["particle_count"] == 50
    assert config["simulation_parameters"]["particle_types"] == 6
    assert config["run_control"] == DEFAULT_CONFIG["run_control"]


def test_merge_config_leaves_defaults_untouched():
    merged = merge_config({"run_control": {"max_steps": 3}}, DEFAULT_CONFIG)
    assert merged["run_control"]["max_steps"] == 3
    assert DEFAULT_CONFIG["run_control"]["max_steps"] == 5000


def test_load_config_missing_file(tmp_path):
    with pytest.raises(FileNotFoundError):
        load_config(str(tmp_path / "absent.json"))


def test_load_config_invalid_json(tmp_path):
    path = tmp_path / "broken.json"
    path.write_text("{not json")
    with pytest.raises(json.JSONDecodeError):
        load_config(str(path))


def test_load_config_requires_object(tmp_path):
    path = tmp_path / "list.json"
    path.write_text("[1, 2, 3]")
    with pytest.raises(ValueError):
        load_config(str(path))


def test_setup_logging_with_rotating_file(tmp_path, restore_logging):
    log_file = tmp_path / "logs" / "run.log"
    setup_logging({"logging": {"level": "debug", "log_file": str(log_file)}})

    root = logging.getLogger()
    assert root.level == logging.DEBUG
    assert any(isinstance(h, logging.handlers.RotatingFileHandler) for h in root.handlers)
    logging.info("hello")
    for handler in root.handlers:
        handler.flush()
    assert "hello" in log_file.read_text()


def test_setup_logging_without_file(restore_logging):
    setup_logging({"logging": {"level": "WARNING", "log_file": None}})

    root = logging.getLogger()
    assert root.level == logging.WARNING
    assert len(root.handlers) == 1
    assert not isinstance(root.handlers[0], logging.FileHandler)
