"""
Configuration loader
"""
import logging
import os
from pathlib import Path

import yaml

from frc_overlay.models import OverlayConfig


logger = logging.getLogger(__name__)

CONFIG_ENV = "FRC_OVERLAY_CONFIG"
DEFAULT_CONFIG_PATH = "config/overlay.yaml"


def load_config(config_path: str = DEFAULT_CONFIG_PATH) -> OverlayConfig:
    """
    Load configuration from YAML file

    Unknown keys are ignored so older config files keep working.

    Args:
        config_path: Path to config file

    Returns:
        OverlayConfig object

    Raises:
        FileNotFoundError: If the config file does not exist
        ValueError: If the file is not a YAML mapping
    """
    path = Path(config_path)

    if not path.exists():
        raise FileNotFoundError(f"Config file not found: {config_path}")

    with open(path, 'r', encoding='utf-8') as f:
        data = yaml.safe_load(f) or {}

    if not isinstance(data, dict):
        raise ValueError(f"Config file must contain a mapping: {config_path}")

    allowed_fields = set(OverlayConfig.model_fields)
    filtered_data = {k: v for k, v in data.items() if k in allowed_fields}

    return OverlayConfig(**filtered_data)


def load_settings() -> OverlayConfig:
    """Config from $FRC_OVERLAY_CONFIG (or the default path), defaults if absent"""
    config_path = os.environ.get(CONFIG_ENV, DEFAULT_CONFIG_PATH)
    try:
        config = load_config(config_path)
    except FileNotFoundError:
        logger.warning(f"⚠️ {config_path} not found, using default settings")
        return OverlayConfig()
    logger.info(f"✅ Loaded settings from {config_path}")
    return config
