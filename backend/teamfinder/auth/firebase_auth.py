"""
Firebase Authentication Middleware

Verifies Firebase ID tokens and resolves the requesting user id.
Supports demo mode, where the ``X-Demo-User-Id`` header names the user
directly.
"""

from dataclasses import dataclass
from typing import Optional

import firebase_admin
from fastapi import Depends, Header, HTTPException, status
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer
from firebase_admin import auth

from teamfinder.core.config import Settings, get_settings


def _ensure_firebase_initialized():
    """Lazy Firebase initialization - only when actually needed for token verification."""
    if not firebase_admin._apps:
        firebase_admin.initialize_app()

# HTTP Bearer scheme for Authorization header
security = HTTPBearer(auto_error=False)


@dataclass
class FirebaseUser:
    """Represents an authenticated requester."""

    uid: str
    email: Optional[str] = None
    name: Optional[str] = None
    is_demo: bool = False

    @classmethod
    def from_token(cls, decoded_token: dict) -> "FirebaseUser":
        """Create FirebaseUser from decoded Firebase ID token."""
        return cls(
            uid=decoded_token["uid"],
            email=decoded_token.get("email"),
            name=decoded_token.get("name"),
            is_demo=False,
        )

    @classmethod
    def demo_user(cls, demo_id: str) -> "FirebaseUser":
        """Create a demo user acting as the directory user ``demo_id``."""
        return cls(uid=demo_id, is_demo=True)


async def get_current_user(
    credentials: Optional[HTTPAuthorizationCredentials] = Depends(security),
    x_demo_user_id: Optional[str] = Header(None, alias="X-Demo-User-Id"),
    settings: Settings = Depends(get_settings),
) -> FirebaseUser:
    """
    Dependency that verifies Firebase ID token and returns the current user.

    Demo mode:
        Send header: X-Demo-User-Id: u-alice
        Returns a user with uid: u-alice
    """
    if settings.demo_mode and x_demo_user_id:
        return FirebaseUser.demo_user(x_demo_user_id)

    if credentials is None:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Missing authentication token",
            headers={"WWW-Authenticate": "Bearer"},
        )

    try:
        _ensure_firebase_initialized()
        decoded_token = auth.verify_id_token(credentials.credentials)
        return FirebaseUser.from_token(decoded_token)
    except auth.ExpiredIdTokenError:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Authentication token has expired",
            headers={"WWW-Authenticate": "Bearer"},
        )
    except auth.InvalidIdTokenError:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Invalid authentication token",
            headers={"WWW-Authenticate": "Bearer"},
        )
    except Exception as e:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail=f"Authentication failed: {str(e)}",
            headers={"WWW-Authenticate": "Bearer"},
        )
