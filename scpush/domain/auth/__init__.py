"""
Authentication domain module
"""
from .models import (
    AuthStatus,
    AuthState,
    KeyFile,
    Password,
    Credential,
    AuthOutcome,
    AuthenticatedSession,
    default_key_paths,
    build_credentials,
)
from .negotiator import AuthNegotiator

__all__ = [
    "AuthStatus",
    "AuthState",
    "KeyFile",
    "Password",
    "Credential",
    "AuthOutcome",
    "AuthenticatedSession",
    "default_key_paths",
    "build_credentials",
    "AuthNegotiator",
]
