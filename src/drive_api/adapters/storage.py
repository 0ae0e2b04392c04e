"""
Object storage adapter backed by S3.

Stores and deletes objects, lists object versions and mints presigned GET
URLs. Presigned URLs are capability tokens: whoever holds one can read the
object until the expiry baked into its signature.
"""

import logging
from dataclasses import dataclass
from datetime import datetime
from typing import IO, Any, Dict, List, Optional
from urllib.parse import quote

from botocore.exceptions import BotoCoreError, ClientError

from drive_api.errors import NotFoundError, UpstreamError
from drive_api.utils.decorators import log_execution_time

try:
    from mypy_boto3_s3 import S3Client
except ImportError:
    ...

logger = logging.getLogger(__name__)

DEFAULT_CONTENT_TYPE = "application/octet-stream"


@dataclass(frozen=True)
class StoredObject:
    key: str
    location: str
    version_id: Optional[str]


@dataclass(frozen=True)
class ObjectSummary:
    key: str
    last_modified: datetime


@dataclass(frozen=True)
class ObjectVersion:
    version_id: str
    is_latest: bool
    last_modified: Optional[datetime]
    size: int
    etag: Optional[str]

    def to_dict(self) -> Dict[str, Any]:
        return {
            "versionId": self.version_id,
            "isLatest": self.is_latest,
            "lastModified": self.last_modified.isoformat() if self.last_modified else None,
            "size": self.size,
            "etag": self.etag,
        }


def _error_code(exc: ClientError) -> str:
    return exc.response.get("Error", {}).get("Code", "")


def attachment_disposition(filename: str) -> str:
    """
    ``Content-Disposition`` value that forces a download under ``filename``.

    The quoted ``filename`` is an ASCII fallback with quotes and backslashes
    dropped; ``filename*`` (RFC 5987) carries the exact UTF-8 name.
    """
    fallback = filename.encode("ascii", "replace").decode("ascii")
    fallback = fallback.replace('"', "").replace("\\", "") or "download"
    encoded = quote(filename, safe="")
    return f"attachment; filename=\"{fallback}\"; filename*=UTF-8''{encoded}"


class ObjectStorage:
    """Thin wrapper around one S3 bucket."""

    def __init__(self, s3_client: "S3Client", bucket_name: str, region: str):
        self.s3_client = s3_client
        self.bucket_name = bucket_name
        self.region = region

    @staticmethod
    def build_key(user_id: str, file_id: str, filename: str) -> str:
        """Object keys are ``<userId>/<fileId>-<originalFilename>``."""
        return f"{user_id}/{file_id}-{filename}"

    def object_location(self, key: str) -> str:
        """Virtual-hosted URL of an object (not a readable link without signing)."""
        if self.region == "us-east-1":
            host = f"{self.bucket_name}.s3.amazonaws.com"
        else:
            host = f"{self.bucket_name}.s3.{self.region}.amazonaws.com"
        return f"https://{host}/{quote(key)}"

    @log_execution_time
    def store(self, key: str, stream: IO[bytes], content_type: Optional[str] = None) -> StoredObject:
        """
        Upload a stream to the bucket.

        :param key: path to the object in the bucket.
        :param stream: readable binary stream positioned at the start of the content.
        :param content_type: The MIME type of the file, e.g. "text/plain".
        """
        try:
            response = self.s3_client.put_object(
                Bucket=self.bucket_name,
                Key=key,
                Body=stream,
                ContentType=content_type or DEFAULT_CONTENT_TYPE,
            )
        except (ClientError, BotoCoreError) as e:
            logger.error(f"Error uploading '{key}' to S3: {str(e)}")
            raise UpstreamError(f"Failed to store object: {str(e)}") from e

        logger.info(f"Uploaded '{key}' to bucket '{self.bucket_name}'")
        return StoredObject(
            key=key,
            location=self.object_location(key),
            version_id=response.get("VersionId"),
        )

    @log_execution_time
    def delete(self, key: str) -> None:
        try:
            self.s3_client.delete_object(Bucket=self.bucket_name, Key=key)
        except (ClientError, BotoCoreError) as e:
            logger.error(f"Error deleting '{key}' from S3: {str(e)}")
            raise UpstreamError(f"Failed to delete object: {str(e)}") from e
        logger.info(f"Deleted '{key}' from bucket '{self.bucket_name}'")

    @log_execution_time
    def list_versions(self, key: str) -> List[ObjectVersion]:
        """All versions of exactly ``key``, newest first as S3 returns them."""
        versions: List[ObjectVersion] = []
        try:
            paginator = self.s3_client.get_paginator("list_object_versions")
            for page in paginator.paginate(Bucket=self.bucket_name, Prefix=key):
                for item in page.get("Versions", []):
                    # a prefix listing can also match longer keys
                    if item["Key"] != key:
                        continue
                    versions.append(
                        ObjectVersion(
                            version_id=item.get("VersionId") or "null",
                            is_latest=bool(item.get("IsLatest", False)),
                            last_modified=item.get("LastModified"),
                            size=int(item.get("Size", 0)),
                            etag=item.get("ETag"),
                        )
                    )
        except (ClientError, BotoCoreError) as e:
            logger.error(f"Error listing versions of '{key}': {str(e)}")
            raise UpstreamError(f"Failed to list object versions: {str(e)}") from e
        return versions

    @log_execution_time
    def list_objects(self, prefix: str = "") -> List[ObjectSummary]:
        objects: List[ObjectSummary] = []
        try:
            paginator = self.s3_client.get_paginator("list_objects_v2")
            for page in paginator.paginate(Bucket=self.bucket_name, Prefix=prefix):
                objects.extend(
                    ObjectSummary(key=item["Key"], last_modified=item["LastModified"])
                    for item in page.get("Contents", [])
                )
        except (ClientError, BotoCoreError) as e:
            logger.error(f"Error listing keys under '{prefix}': {str(e)}")
            raise UpstreamError(f"Failed to list objects: {str(e)}") from e
        return objects

    def list_keys(self, prefix: str = "") -> List[str]:
        return [obj.key for obj in self.list_objects(prefix)]

    def sign_download_url(self, key: str, ttl_seconds: int, response_filename: Optional[str] = None) -> str:
        """
        Presigned GET URL valid for ``ttl_seconds`` from now.

        Signing is local to the SDK and makes no network call.
        """
        params: Dict[str, Any] = {"Bucket": self.bucket_name, "Key": key}
        if response_filename:
            params["ResponseContentDisposition"] = attachment_disposition(response_filename)
        try:
            return self.s3_client.generate_presigned_url(
                ClientMethod="get_object",
                Params=params,
                ExpiresIn=ttl_seconds,
            )
        except (ClientError, BotoCoreError) as e:
            logger.error(f"Error signing URL for '{key}': {str(e)}")
            raise UpstreamError(f"Failed to sign URL: {str(e)}") from e

    def ping(self) -> None:
        try:
            self.s3_client.head_bucket(Bucket=self.bucket_name)
        except ClientError as e:
            if _error_code(e) in ("404", "NoSuchBucket"):
                raise NotFoundError(f"Bucket '{self.bucket_name}' not found") from e
            raise UpstreamError(str(e)) from e
        except BotoCoreError as e:
            raise UpstreamError(str(e)) from e
