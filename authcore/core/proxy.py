"""WSGI proxy middleware configuration helper."""

from __future__ import annotations

from flask import Flask
from werkzeug.middleware.proxy_fix import ProxyFix


def init_app(app: Flask) -> None:
    """Apply :class:`~werkzeug.middleware.proxy_fix.ProxyFix` when enabled.

    ``request.remote_addr`` then reflects the client seen by the first proxy,
    which is what gets recorded as ``ip_address`` on issued refresh tokens.
    Controlled by ``USE_PROXYFIX``; trusts a single hop.
    """
    if app.config.get("USE_PROXYFIX", True):
        app.wsgi_app = ProxyFix(app.wsgi_app, x_for=1, x_proto=1)
