"""Middleware for the photoframe gallery API."""
from __future__ import annotations

from .body_guard import BodyGuardMiddleware

__all__ = ["BodyGuardMiddleware"]
