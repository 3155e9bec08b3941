"""Portfolio API: Flask backend for accounts, JWT sessions and user admin.

Provide convenient access to :func:`portfolio_api.factory.create_app` so
callers can ``from portfolio_api import create_app``.
"""

from __future__ import annotations

from .factory import create_app

__all__ = ["create_app"]
