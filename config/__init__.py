"""Configuration module for Quote Harvester.

Centralized configuration management using pydantic-settings: timings,
file paths and browser parameters are validated once at startup.
"""

from config.settings import GlobalConfig, get_config

__all__ = ["GlobalConfig", "get_config"]
