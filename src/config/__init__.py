"""Configuration module -- exports Settings and the YAML config helpers."""

from src.config.loader import chunking_config_from, load_config
from src.config.settings import Settings

__all__ = ["Settings", "chunking_config_from", "load_config"]
