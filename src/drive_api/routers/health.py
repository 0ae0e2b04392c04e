import time
from datetime import datetime, timezone

from fastapi import APIRouter, Depends, Request

from drive_api.adapters.identity import IdentityProvider
from drive_api.adapters.metadata import FileMetadataStore
from drive_api.adapters.storage import ObjectStorage
from drive_api.config.settings import Settings
from drive_api.dependencies import (
    get_app_settings,
    get_identity_provider,
    get_metadata_store,
    get_object_storage,
)
from drive_api.errors import DriveAPIError
from drive_api.schemas import HealthResponse

router = APIRouter()


@router.get("/health", response_model=HealthResponse)
def health_check(
    request: Request,
    settings: Settings = Depends(get_app_settings),
    storage: ObjectStorage = Depends(get_object_storage),
    metadata_store: FileMetadataStore = Depends(get_metadata_store),
    identity_provider: IdentityProvider = Depends(get_identity_provider),
) -> HealthResponse:
    """
    Liveness probe that also reports whether the bucket and table are reachable
    and the identity provider is configured.

    Always answers 200; a failing component only flips `status` to `degraded`.
    """
    components = {"api": "ready", "storage": "ready", "metadata": "ready", "identity": "ready"}
    checks = {
        "storage": storage.ping,
        "metadata": metadata_store.ping,
        "identity": identity_provider.ping,
    }
    for name, ping in checks.items():
        try:
            ping()
        except DriveAPIError as e:
            components[name] = f"error: {e.message}"

    all_ready = all(state == "ready" for state in components.values())
    return HealthResponse(
        status="OK" if all_ready else "degraded",
        timestamp=datetime.now(timezone.utc),
        uptime=round(time.monotonic() - request.app.state.started_at, 3),
        environment=settings.app_env,
        components=components,
    )
