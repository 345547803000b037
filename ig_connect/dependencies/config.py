"""
Settings dependency shared by the account, token-listing and relay routes.

Routes resolve settings through ``get_app_settings`` so tests can swap in a
copy with a different ``APP_ENV`` via ``app.dependency_overrides``.
"""

from ig_connect.core.config import AppSettings, get_settings


def get_app_settings() -> AppSettings:
    """Return the process-wide settings (cached by ``get_settings``)."""
    return get_settings()


__all__ = ["get_app_settings"]
