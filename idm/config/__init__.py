"""Configuration module for the IDM service."""
from .settings import AppConfig, find_env_file, load_settings

__all__ = ["AppConfig", "find_env_file", "load_settings"]
