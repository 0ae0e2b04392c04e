"""FastAPI dependencies: settings, service adapters and the authenticated caller.

The adapters are built once in ``create_app`` and live on ``app.state``;
these functions hand them to route handlers.
"""
from typing import Optional

from fastapi import Depends, Request
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer

from drive_api.adapters.identity import AuthContext, IdentityProvider
from drive_api.adapters.metadata import FileMetadataStore
from drive_api.adapters.storage import ObjectStorage
from drive_api.config.settings import Settings
from drive_api.errors import AuthError

# auto_error=False so a missing header is reported as our 401 body, not Starlette's 403
bearer_scheme = HTTPBearer(auto_error=False, description="Cognito access token")


def get_app_settings(request: Request) -> Settings:
    return request.app.state.settings


def get_identity_provider(request: Request) -> IdentityProvider:
    return request.app.state.identity_provider


def get_metadata_store(request: Request) -> FileMetadataStore:
    return request.app.state.metadata_store


def get_object_storage(request: Request) -> ObjectStorage:
    return request.app.state.object_storage


def get_auth_context(
    credentials: Optional[HTTPAuthorizationCredentials] = Depends(bearer_scheme),
    identity_provider: IdentityProvider = Depends(get_identity_provider),
) -> AuthContext:
    """Resolve ``Authorization: Bearer <token>`` to the caller, or 401."""
    if credentials is None or not credentials.credentials:
        raise AuthError("No token provided")
    return identity_provider.authenticate(credentials.credentials)
