"""
FastAPI dependency injection for the Try-On Gateway.

The settings the app was built with and the TryOnService created in the
application lifespan both live on `app.state`; handlers receive them through
`get_settings` and `get_service`. Caller identity and admin rights come from
headers set by the external authentication layer.
"""

import secrets
from typing import Optional

from fastapi import Depends, Header, HTTPException, Request, status

from tryon_gateway.config import Settings, settings as default_settings
from tryon_gateway.service import TryOnService


def get_settings(request: Request) -> Settings:
    """
    Get the settings the application was created with.

    Returns:
        Settings stored by create_app, or the environment-loaded defaults
    """
    return getattr(request.app.state, "settings", None) or default_settings


def get_service(request: Request) -> TryOnService:
    """
    Get the application's TryOnService.

    Raises:
        HTTPException: 503 when the service is not initialized yet
    """
    service = getattr(request.app.state, "service", None)
    if service is None:
        raise HTTPException(
            status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
            detail="Service not initialized",
        )
    return service


def get_caller_id(x_caller_id: Optional[str] = Header(default=None)) -> str:
    """
    Authenticated caller identity, forwarded by the auth layer.

    Raises:
        HTTPException: 401 when the identity header is missing
    """
    if not x_caller_id or not x_caller_id.strip():
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Authentication required",
        )
    return x_caller_id.strip()


def require_admin(
    x_admin_token: Optional[str] = Header(default=None),
    settings: Settings = Depends(get_settings),
) -> None:
    """
    Guard for privileged endpoints.

    Raises:
        HTTPException: 403 unless the admin token matches the configured one
    """
    if not settings.ADMIN_TOKEN or not x_admin_token or not secrets.compare_digest(
        x_admin_token, settings.ADMIN_TOKEN
    ):
        raise HTTPException(
            status_code=status.HTTP_403_FORBIDDEN,
            detail="Unauthorized. Admin privileges required.",
        )
