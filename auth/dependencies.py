"""
FastAPI dependency functions for authentication.

These can be used in routes with Depends() to reach the app's Authenticator.
"""

from fastapi import Request

from .service import Authenticator


def get_authenticator(request: Request) -> Authenticator:
    """
    Dependency that returns the Authenticator built by `create_app`.

    Args:
        request (Request): Automatically provided by FastAPI.

    Returns:
        Authenticator: The per-app instance stored on `app.state`.
    """
    return request.app.state.authenticator
