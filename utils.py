# utils.py
"""
Utility functions for the simulation framework.

This module provides helper functions for logging setup and configuration
loading that are used across the application but do not belong to the
physics or the rendering.
"""
import copy
import logging
import logging.handlers
import json
import os
from typing import Dict, Any, Optional

# --- Data Contracts ---
#
# setup_logging(config: Dict[str, Any]) -> None:
#   - Inputs:
#     - config: A dictionary containing a "logging" key with "level",
#       "format", and "log_file" sub-keys. A null "log_file" disables
#       the file handler.
#   - Side Effects: Configures the root Python logger with a console
#     handler and, optionally, a rotating file handler.
#
# load_config(path: str, defaults: Optional[Dict]) -> Dict[str, Any]:
#   - Outputs: The parsed JSON, with missing sections and keys filled
#     from `defaults`.
#   - Side Effects: Logs and re-raises file and JSON errors.

DEFAULT_CONFIG: Dict[str, Any] = {
    "simulation_parameters": {
        "seed": 42,
        "particle_count": 10000,
        "particle_types": 6,
        "species_assignment": "hash",
    },
    "run_control": {
        "max_steps": 5000,
        "log_throttle_steps": 100,
        "headless": False,
        "profile": True,
    },
    "visualization": {},
    "logging": {
        "level": "INFO",
        "format": "%(asctime)s - %(levelname)s - %(message)s",
        "log_file": "logs/simulation.log",
    },
}


def setup_logging(config: Dict[str, Any]) -> None:
    """
    Configures the logging system from a configuration dictionary.

    Sets up logging to the console and, unless disabled, a rotating file.
    """
    log_config = config.get('logging', {})
    log_level = log_config.get('level', 'INFO').upper()
    log_format = log_config.get('format', '%(asctime)s - %(levelname)s - %(message)s')
    log_file_path = log_config.get('log_file', 'logs/simulation.log')

    logger = logging.getLogger()
    logger.setLevel(log_level)

    # Clear existing handlers to avoid duplication
    if logger.hasHandlers():
        for handler in list(logger.handlers):
            handler.close()
        logger.handlers.clear()

    formatter = logging.Formatter(log_format)

    console_handler = logging.StreamHandler()
    console_handler.setFormatter(formatter)
    logger.addHandler(console_handler)

    if log_file_path:
        log_dir = os.path.dirname(log_file_path)
        if log_dir:
            os.makedirs(log_dir, exist_ok=True)
        # Rotates when the log reaches 1MB, keeps 5 backup logs.
        file_handler = logging.handlers.RotatingFileHandler(
            log_file_path, maxBytes=1024*1024, backupCount=5
        )
        file_handler.setFormatter(formatter)
        logger.addHandler(file_handler)

    logging.info("Logging system initialized.")
    logging.debug(f"Log level set to {log_level}.")
    logging.debug(f"Log file path: {log_file_path or 'disabled'}")


def merge_config(config: Dict[str, Any], defaults: Dict[str, Any]) -> Dict[str, Any]:
    """Returns a copy of `config` with sections and keys missing from it taken from `defaults`."""
    merged = copy.deepcopy(defaults)
    for key, value in config.items():
        if isinstance(value, dict) and isinstance(merged.get(key), dict):
            merged[key].update(value)
        else:
            merged[key] = value
    return merged


def load_config(path: str, defaults: Optional[Dict[str, Any]] = None) -> Dict[str, Any]:
    """Loads a JSON configuration file and fills in defaults."""
    logging.info(f"Loading configuration from {path}...")
    try:
        with open(path, 'r') as f:
            config = json.load(f)
    except FileNotFoundError:
        logging.error(f"Configuration file not found at {path}.")
        raise
    except json.JSONDecodeError:
        logging.error(f"Error decoding JSON from {path}.")
        raise
    if not isinstance(config, dict):
        msg = f"Configuration file {path} must contain a JSON object at the root."
        logging.error(msg)
        raise ValueError(msg)

    logging.info("Configuration loaded successfully.")
    return merge_config(config, DEFAULT_CONFIG if defaults is None else defaults)
