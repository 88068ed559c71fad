# app/auth.py
"""Shared authentication dependencies."""

import secrets

from fastapi import Header, HTTPException

from app.config import get_settings


def require_app_password(
    x_api_key: str | None = Header(default=None, alias="X-API-Key"),
) -> None:
    """Validate the shared editor password. Fails closed if APP_PASSWORD is not set."""
    expected_key = get_settings().APP_PASSWORD

    if not expected_key:
        raise HTTPException(
            status_code=500,
            detail="Server misconfiguration: authentication not configured",
        )

    if not x_api_key or not secrets.compare_digest(x_api_key, expected_key):
        raise HTTPException(
            status_code=401,
            detail="Invalid or missing API key",
        )
