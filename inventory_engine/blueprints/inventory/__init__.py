"""
Inventory API blueprint package.

Exposes inventory_bp for app factory registration.
"""

from __future__ import annotations

from .routes import inventory_bp  # noqa: F401
