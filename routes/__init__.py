"""HTTP routes for the SSTV encoder."""

from __future__ import annotations

from flask import Flask

from .sstv_encode import sstv_encode_bp


def register_blueprints(app: Flask) -> None:
    """Register all encoder blueprints on ``app``."""
    app.register_blueprint(sstv_encode_bp)


__all__ = ['register_blueprints', 'sstv_encode_bp']
