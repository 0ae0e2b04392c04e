import logging
import posixpath
from datetime import datetime, timedelta, timezone
from typing import Optional
from uuid import uuid4

from fastapi import APIRouter, Depends, File, Path, Request, UploadFile, status

from drive_api.adapters.identity import AuthContext
from drive_api.adapters.metadata import FileMetadataStore
from drive_api.adapters.storage import ObjectStorage
from drive_api.config.settings import Settings
from drive_api.dependencies import (
    get_app_settings,
    get_auth_context,
    get_metadata_store,
    get_object_storage,
)
from drive_api.errors import DriveAPIError, PayloadTooLargeError, ValidationError, error_response
from drive_api.schemas import (
    DownloadResponse,
    FileRecord,
    FileVersion,
    GetFileResponse,
    GetFilesResponse,
    GetVersionsResponse,
    MessageResponse,
    ShareRequest,
    ShareResponse,
    UploadResponse,
)

logger = logging.getLogger(__name__)

# room for the multipart boundaries and part headers around the file bytes
MULTIPART_ENVELOPE_BYTES = 64 * 1024

# every route below requires a bearer token, whatever the method
router = APIRouter(prefix="/files", dependencies=[Depends(get_auth_context)])


def _utc_now() -> datetime:
    return datetime.now(timezone.utc)


def _clean_filename(filename: str) -> str:
    """Keep only the last path component; object keys must not gain extra prefixes."""
    name = posixpath.basename(filename.replace("\\", "/")).strip()
    return name or "file"


def _stream_size(upload: UploadFile) -> int:
    stream = upload.file
    stream.seek(0, 2)
    size = stream.tell()
    stream.seek(0)
    return size


async def reject_oversized_uploads(request: Request, call_next):
    """
    Refuse an upload before its body is read when ``Content-Length`` already
    exceeds the cap.

    Requests without a usable ``Content-Length`` fall through to the size
    check in `upload_file`.
    """
    settings: Settings = request.app.state.settings
    if request.method == "POST" and request.url.path == f"{settings.api_prefix}/files/upload":
        content_length = request.headers.get("content-length", "")
        limit = settings.max_upload_size_bytes + MULTIPART_ENVELOPE_BYTES
        if content_length.isdigit() and int(content_length) > limit:
            logger.info(f"Rejected upload of {content_length} bytes before reading the body")
            error = PayloadTooLargeError(
                f"File exceeds the maximum upload size of {settings.max_upload_size_bytes} bytes"
            )
            return error_response(error.status_code, error.message)
    return await call_next(request)


@router.post("/upload", response_model=UploadResponse, status_code=status.HTTP_201_CREATED)
def upload_file(
    file: Optional[UploadFile] = File(None, description="The file to upload"),
    auth: AuthContext = Depends(get_auth_context),
    settings: Settings = Depends(get_app_settings),
    storage: ObjectStorage = Depends(get_object_storage),
    metadata_store: FileMetadataStore = Depends(get_metadata_store),
) -> UploadResponse:
    """
    Upload a file to object storage and record its metadata.

    The object is written first and the record second. If the record write
    fails the object is left behind; `drive-api sweep-orphans` reclaims it.
    """
    if file is None or not file.filename:
        raise ValidationError("No file uploaded")

    file_size = _stream_size(file)
    if file_size > settings.max_upload_size_bytes:
        raise PayloadTooLargeError(
            f"File exceeds the maximum upload size of {settings.max_upload_size_bytes} bytes"
        )

    file_name = _clean_filename(file.filename)
    file_id = str(uuid4())
    key = ObjectStorage.build_key(auth.user_id, file_id, file_name)
    stored = storage.store(key, file.file, file.content_type)

    record = {
        "userId": auth.user_id,
        "fileId": file_id,
        "fileName": file_name,
        "fileSize": file_size,
        "s3Key": stored.key,
        "s3Location": stored.location,
        "versionId": stored.version_id,
        "mimeType": file.content_type or "application/octet-stream",
        "uploadDate": _utc_now().isoformat(),
        "isPublic": False,
        "downloadCount": 0,
    }
    try:
        metadata_store.put(record)
    except DriveAPIError:
        logger.warning(f"Object '{stored.key}' stored without a metadata record")
        raise

    logger.info(f"Uploaded file {file_id} ({file_size} bytes)")
    return UploadResponse(message="File uploaded successfully", file=FileRecord(**record))


@router.get("", response_model=GetFilesResponse, response_model_exclude_none=True)
def list_files(
    auth: AuthContext = Depends(get_auth_context),
    metadata_store: FileMetadataStore = Depends(get_metadata_store),
) -> GetFilesResponse:
    """List the caller's files, newest upload first."""
    records = metadata_store.query(auth.user_id)
    return GetFilesResponse(files=[FileRecord(**record) for record in records], count=len(records))


@router.get("/download/{file_id}", response_model=DownloadResponse)
def download_file(
    file_id: str = Path(..., description="The id of the file to download"),
    auth: AuthContext = Depends(get_auth_context),
    settings: Settings = Depends(get_app_settings),
    storage: ObjectStorage = Depends(get_object_storage),
    metadata_store: FileMetadataStore = Depends(get_metadata_store),
) -> DownloadResponse:
    """Issue a presigned download URL and count the download."""
    record = metadata_store.get(auth.user_id, file_id)
    ttl = settings.download_url_ttl_seconds
    url = storage.sign_download_url(record["s3Key"], ttl, response_filename=record["fileName"])
    metadata_store.increment_download_count(auth.user_id, file_id)
    return DownloadResponse(downloadUrl=url, fileName=record["fileName"], expiresIn=ttl)


@router.get("/{file_id}", response_model=GetFileResponse, response_model_exclude_none=True)
def get_file(
    file_id: str = Path(..., description="The id of the file"),
    auth: AuthContext = Depends(get_auth_context),
    metadata_store: FileMetadataStore = Depends(get_metadata_store),
) -> GetFileResponse:
    record = metadata_store.get(auth.user_id, file_id)
    return GetFileResponse(file=FileRecord(**record))


@router.get("/{file_id}/versions", response_model=GetVersionsResponse)
def get_file_versions(
    file_id: str = Path(..., description="The id of the file"),
    auth: AuthContext = Depends(get_auth_context),
    storage: ObjectStorage = Depends(get_object_storage),
    metadata_store: FileMetadataStore = Depends(get_metadata_store),
) -> GetVersionsResponse:
    record = metadata_store.get(auth.user_id, file_id)
    versions = storage.list_versions(record["s3Key"])
    return GetVersionsResponse(
        versions=[FileVersion(**version.to_dict()) for version in versions],
        currentVersion=record.get("versionId"),
    )


@router.delete("/{file_id}", response_model=MessageResponse)
def delete_file(
    file_id: str = Path(..., description="The id of the file to delete"),
    auth: AuthContext = Depends(get_auth_context),
    storage: ObjectStorage = Depends(get_object_storage),
    metadata_store: FileMetadataStore = Depends(get_metadata_store),
) -> MessageResponse:
    """Delete the object and then its metadata record."""
    record = metadata_store.get(auth.user_id, file_id)
    storage.delete(record["s3Key"])
    metadata_store.delete(auth.user_id, file_id)
    logger.info(f"Deleted file {file_id}")
    return MessageResponse(message="File deleted successfully")


@router.post("/share/{file_id}", response_model=ShareResponse)
def share_file(
    file_id: str = Path(..., description="The id of the file to share"),
    payload: Optional[ShareRequest] = None,
    auth: AuthContext = Depends(get_auth_context),
    settings: Settings = Depends(get_app_settings),
    storage: ObjectStorage = Depends(get_object_storage),
    metadata_store: FileMetadataStore = Depends(get_metadata_store),
) -> ShareResponse:
    """
    Create a shareable presigned link.

    Anyone holding the link can read the file until it expires; unsharing
    only clears the record's share fields and cannot revoke a link already
    handed out.
    """
    expires_in = payload.expiresIn if payload else settings.default_share_ttl_seconds
    if expires_in < 1 or expires_in > settings.max_share_ttl_seconds:
        raise ValidationError(
            f"expiresIn must be between 1 and {settings.max_share_ttl_seconds} seconds"
        )

    record = metadata_store.get(auth.user_id, file_id)
    share_url = storage.sign_download_url(record["s3Key"], expires_in)

    now = _utc_now()
    expires_at = now + timedelta(seconds=expires_in)
    metadata_store.update(
        auth.user_id,
        file_id,
        set_fields={
            "isPublic": True,
            "lastShared": now.isoformat(),
            "shareExpiry": expires_at.isoformat(),
        },
    )
    return ShareResponse(shareUrl=share_url, expiresAt=expires_at, expiresIn=expires_in)


@router.post("/unshare/{file_id}", response_model=MessageResponse)
def unshare_file(
    file_id: str = Path(..., description="The id of the file to unshare"),
    auth: AuthContext = Depends(get_auth_context),
    metadata_store: FileMetadataStore = Depends(get_metadata_store),
) -> MessageResponse:
    metadata_store.update(
        auth.user_id,
        file_id,
        set_fields={"isPublic": False},
        remove_fields=["shareExpiry"],
    )
    return MessageResponse(message="Share link revoked successfully")
