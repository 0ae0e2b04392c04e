from fastapi import APIRouter, Depends

from drive_api.adapters.identity import AuthContext
from drive_api.adapters.metadata import FileMetadataStore
from drive_api.dependencies import get_auth_context, get_metadata_store
from drive_api.schemas import StatsResponse
from drive_api.utils.formatting import format_bytes

router = APIRouter()


@router.get("/stats", response_model=StatsResponse)
def get_stats(
    auth: AuthContext = Depends(get_auth_context),
    metadata_store: FileMetadataStore = Depends(get_metadata_store),
) -> StatsResponse:
    """Total file count and byte size for the caller."""
    records = metadata_store.query(auth.user_id)
    total_size = sum(int(record.get("fileSize") or 0) for record in records)
    return StatsResponse(
        totalFiles=len(records),
        totalSize=total_size,
        totalSizeFormatted=format_bytes(total_size),
    )
