"""
I/O utilities: YAML settings and random seeds.
"""

import logging
from pathlib import Path
from typing import Dict, Union

import yaml

logger = logging.getLogger(__name__)


def set_global_seed(seed: int) -> None:
    """Make classifier weight initialization and dropout reproducible.

    Seeds Python, NumPy and TensorFlow in one call through Keras.
    """
    import tensorflow as tf

    tf.keras.utils.set_random_seed(seed)
    logger.debug("Model RNG seeded with %d", seed)


def load_config(config_path: Union[str, Path]) -> Dict:
    """
    Load settings from a YAML file.

    Args:
        config_path: Path to the YAML configuration file.

    Returns:
        Dict: The loaded configuration (empty dict for an empty file).

    Raises:
        FileNotFoundError: If the file does not exist.
        ValueError: If the document is not a mapping.
    """
    config_path = Path(config_path)
    if not config_path.exists():
        raise FileNotFoundError(f"Config file not found: {config_path}")

    with open(config_path, 'r') as f:
        config = yaml.safe_load(f)

    if config is None:
        return {}
    if not isinstance(config, dict):
        raise ValueError(f"Config {config_path} must be a mapping, got {type(config).__name__}.")
    logger.debug("Loaded config %s: %s", config_path, sorted(config))
    return config
