"""
Adapter layer for the Cloud Drive API.

Contains the three service adapters: identity (Cognito), file metadata
(DynamoDB) and object storage (S3). Each one translates botocore failures into
the exceptions in ``drive_api.errors``.
"""

from drive_api.adapters.identity import AuthContext, IdentityProvider, TokenSet
from drive_api.adapters.metadata import FileMetadataStore
from drive_api.adapters.storage import ObjectStorage, ObjectVersion, StoredObject

__all__ = [
    "AuthContext",
    "FileMetadataStore",
    "IdentityProvider",
    "ObjectStorage",
    "ObjectVersion",
    "StoredObject",
    "TokenSet",
]
