"""
Configuration management for ISV Auth Python SDK
"""

from .client_config import (
    IsvClientConfig,
    ENV_PREFIX,
    load_config_from_json,
    load_config_from_file,
    load_config_from_env,
)

__all__ = [
    'IsvClientConfig',
    'ENV_PREFIX',
    'load_config_from_json',
    'load_config_from_file',
    'load_config_from_env',
]
