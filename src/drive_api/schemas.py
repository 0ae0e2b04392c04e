####################################
# --- Request/response schemas --- #
####################################

from datetime import datetime
from typing import Dict, List, Optional

from pydantic import (
    BaseModel,
    ConfigDict,
    Field,
)

DEFAULT_DOWNLOAD_TTL_SECONDS = 3600
DEFAULT_SHARE_TTL_SECONDS = 86400


class MessageResponse(BaseModel):
    """Generic acknowledgement body."""
    message: str


#############
# --- Auth --- #
#############

class RegisterRequest(BaseModel):
    """Request body for `POST /auth/register`."""
    email: str = Field(min_length=1, json_schema_extra={"example": "ada@example.com"})
    password: str = Field(min_length=1)
    name: str = Field("", description="Display name stored as the `name` attribute.")


class LoginRequest(BaseModel):
    """Request body for `POST /auth/login`."""
    email: str = Field(min_length=1)
    password: str = Field(min_length=1)


class LoginResponse(BaseModel):
    """Response model for `POST /auth/login`."""
    token: str = Field(description="Access token to send as `Authorization: Bearer <token>`.")
    refreshToken: str
    expiresIn: int = Field(description="Access token lifetime in seconds.")


class VerifyRequest(BaseModel):
    """Request body for `POST /auth/verify`."""
    email: str = Field(min_length=1)
    code: str = Field(min_length=1, description="Confirmation code from the verification email.")


class ResendVerificationRequest(BaseModel):
    """Request body for `POST /auth/resend-verification`.

    `email` is optional at the schema level so a missing value is reported
    as "Email is required" rather than a generic validation failure.
    """
    email: Optional[str] = None


##############
# --- Files --- #
##############

class FileRecord(BaseModel):
    """Metadata record of one uploaded file, as stored in the table."""
    userId: str
    fileId: str
    fileName: str
    fileSize: int = Field(description="The size of the file in bytes.")
    mimeType: Optional[str] = None
    uploadDate: datetime
    s3Key: str
    s3Location: Optional[str] = None
    versionId: Optional[str] = None
    isPublic: bool = False
    lastShared: Optional[datetime] = None
    shareExpiry: Optional[datetime] = None
    downloadCount: int = 0

    model_config = ConfigDict(
        json_schema_extra={
            "example": {
                "userId": "ada@example.com",
                "fileId": "0b6f4c1e-6a0c-4b43-9b5e-3e1f7f0f3f7a",
                "fileName": "report.pdf",
                "fileSize": 52431,
                "mimeType": "application/pdf",
                "uploadDate": "2024-01-01T00:00:00+00:00",
                "s3Key": "ada@example.com/0b6f4c1e-6a0c-4b43-9b5e-3e1f7f0f3f7a-report.pdf",
                "s3Location": "https://cloud-drive-files.s3.amazonaws.com/ada%40example.com/0b6f4c1e-6a0c-4b43-9b5e-3e1f7f0f3f7a-report.pdf",
                "versionId": "3HL4kqtJlcpXroDTDmjVBH40Nrjfkd",
                "isPublic": False,
                "downloadCount": 0,
            }
        }
    )


class UploadResponse(BaseModel):
    """Response model for `POST /files/upload`."""
    message: str
    file: FileRecord


class GetFilesResponse(BaseModel):
    """Response model for `GET /files`."""
    files: List[FileRecord]
    count: int


class GetFileResponse(BaseModel):
    """Response model for `GET /files/:id`."""
    file: FileRecord


class DownloadResponse(BaseModel):
    """Response model for `GET /files/download/:id`."""
    downloadUrl: str
    fileName: str
    expiresIn: int = DEFAULT_DOWNLOAD_TTL_SECONDS


class FileVersion(BaseModel):
    versionId: str
    isLatest: bool
    lastModified: Optional[datetime] = None
    size: int
    etag: Optional[str] = None


class GetVersionsResponse(BaseModel):
    """Response model for `GET /files/:id/versions`."""
    versions: List[FileVersion]
    currentVersion: Optional[str] = None


class ShareRequest(BaseModel):
    """Request body for `POST /files/share/:id`. Bounds are checked against settings."""
    expiresIn: int = Field(DEFAULT_SHARE_TTL_SECONDS, description="Link lifetime in seconds.")


class ShareResponse(BaseModel):
    """Response model for `POST /files/share/:id`."""
    shareUrl: str
    expiresAt: datetime
    expiresIn: int


##############
# --- Misc --- #
##############

class StatsResponse(BaseModel):
    """Response model for `GET /stats`."""
    totalFiles: int
    totalSize: int
    totalSizeFormatted: str

    model_config = ConfigDict(
        json_schema_extra={
            "example": {"totalFiles": 3, "totalSize": 1536, "totalSizeFormatted": "1.5 KB"}
        }
    )


class HealthResponse(BaseModel):
    """Response model for `GET /health`."""
    status: str
    timestamp: datetime
    uptime: float = Field(description="Seconds since the app was created.")
    environment: str
    components: Dict[str, str]
