"""Configuration package for runtime settings and startup validation."""

from token_portfolio.domain import RateFailurePolicy

from .settings import AppSettings, SettingsLoadError, config_load_settings

__all__ = ["AppSettings", "RateFailurePolicy", "SettingsLoadError", "config_load_settings"]
