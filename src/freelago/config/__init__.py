"""
Configuration for the Freelago Task API.
"""

from .app_config import AppConfig, get_app_config, reload_config

__all__ = ["AppConfig", "get_app_config", "reload_config"]
