# onnxmodel/config.py
import argparse
import json
from pathlib import Path

import yaml

# Built-in defaults for the MNIST suite, overridden by config file then CLI.
DEFAULT_CONFIG = {
    "model": "model.onnx",
    "test_image_root": "mnist_png/testing",
    "tests_per_digit": 20,
    "device": "cpu",
    "warmup_runs": 0,
    "log_level": "INFO",
    "log_to_file": False,
}


def load_config(path: str = None):
    if not path:
        return {}
    p = Path(path)
    if not p.exists():
        raise FileNotFoundError(f"Config not found: {path}")
    if p.suffix.lower() in {".yml", ".yaml"}:
        return yaml.safe_load(p.read_text()) or {}
    if p.suffix.lower() == ".json":
        return json.loads(p.read_text())
    raise ValueError("Config must be .yml/.yaml or .json")


def merge_config(args: argparse.Namespace, config: dict) -> dict:
    """
    Merge command-line arguments with a loaded config on top of DEFAULT_CONFIG.
    Args override config values if they are not None.
    """
    merged = dict(DEFAULT_CONFIG)
    merged.update(config)
    for key, value in vars(args).items():
        if value is not None and key != "config":
            merged[key] = value
    return merged
