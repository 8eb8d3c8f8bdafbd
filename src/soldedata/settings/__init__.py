"""Layered settings (TOML files + SOLDE_* environment variables)."""

from soldedata.settings.config import Settings, get_settings

__all__ = ["Settings", "get_settings"]
