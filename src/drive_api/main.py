import logging
import time
from textwrap import dedent
from typing import Optional

import pydantic
from fastapi import FastAPI
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.routing import APIRoute
from starlette.exceptions import HTTPException as StarletteHTTPException

from drive_api.adapters.identity import IdentityProvider
from drive_api.adapters.metadata import FileMetadataStore
from drive_api.adapters.storage import ObjectStorage
from drive_api.aws.clients import AWSClientFactory
from drive_api.config.settings import Settings, get_settings
from drive_api.errors import (
    DriveAPIError,
    handle_broad_exceptions,
    handle_drive_api_errors,
    handle_http_exceptions,
    handle_pydantic_validation_errors,
)
from drive_api.logging_config import configure_logging
from drive_api.routers.auth import router as auth_router
from drive_api.routers.files import reject_oversized_uploads
from drive_api.routers.files import router as files_router
from drive_api.routers.health import router as health_router
from drive_api.routers.stats import router as stats_router

# Set up logging
logger = logging.getLogger(__name__)


def create_app(
    settings: Settings | None = None,
    *,
    identity_provider: Optional[IdentityProvider] = None,
    metadata_store: Optional[FileMetadataStore] = None,
    object_storage: Optional[ObjectStorage] = None,
) -> FastAPI:
    """Create a FastAPI application.

    The three service adapters are built once here from ``settings`` and kept
    on ``app.state`` for the lifetime of the process. Pass any of them in to
    replace the AWS-backed default (tests do this).
    """
    settings = settings or get_settings()
    configure_logging(settings.log_level)

    if identity_provider is None or metadata_store is None or object_storage is None:
        factory = AWSClientFactory(settings)
        if identity_provider is None:
            identity_provider = IdentityProvider(factory.cognito_client(), settings.cognito_client_id)
        if metadata_store is None:
            metadata_store = FileMetadataStore(factory.dynamodb_table())
        if object_storage is None:
            object_storage = ObjectStorage(factory.s3_client(), settings.s3_bucket, settings.aws_region)

    app = FastAPI(
        title="Cloud Drive API",
        summary="Store, share and download personal files",
        version="v1",
        description=dedent(
            """\
        Personal cloud storage backed by S3 (objects), DynamoDB (file records)
        and Cognito (users).

        Authenticate with `POST /auth/login` and send the returned token as
        `Authorization: Bearer <token>` on every `/files` and `/stats` call.
        """
        ),
        docs_url=f"{settings.api_prefix}/docs",
        openapi_url=f"{settings.api_prefix}/openapi.json",
        generate_unique_id_function=custom_generate_unique_id,
    )

    # registered before CORS so early 413s still carry CORS headers
    app.middleware("http")(reject_oversized_uploads)
    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.cors_origins,
        allow_credentials="*" not in settings.cors_origins,
        allow_methods=["*"],
        allow_headers=["*"],
    )
    app.state.settings = settings
    app.state.identity_provider = identity_provider
    app.state.metadata_store = metadata_store
    app.state.object_storage = object_storage
    app.state.started_at = time.monotonic()

    app.include_router(auth_router, prefix=settings.api_prefix, tags=["auth"])
    app.include_router(files_router, prefix=settings.api_prefix, tags=["files"])
    app.include_router(stats_router, prefix=settings.api_prefix, tags=["stats"])
    app.include_router(health_router, prefix=settings.api_prefix, tags=["health"])

    app.add_exception_handler(DriveAPIError, handle_drive_api_errors)
    app.add_exception_handler(StarletteHTTPException, handle_http_exceptions)
    app.add_exception_handler(RequestValidationError, handle_pydantic_validation_errors)
    app.add_exception_handler(
        exc_class_or_status_code=pydantic.ValidationError,
        handler=handle_pydantic_validation_errors,
    )
    app.middleware("http")(handle_broad_exceptions)

    logger.info(f"Cloud Drive API created ({settings.app_env}, prefix '{settings.api_prefix or '/'}')")
    return app


def custom_generate_unique_id(route: APIRoute):
    """
    Generate prettier `operationId`s in the OpenAPI schema.

    These become the function names in generated client SDKs.
    """
    return f"{route.tags[0]}-{route.name}"


if __name__ == "__main__":
    import uvicorn

    settings = get_settings()
    uvicorn.run(create_app(settings), host=settings.host, port=settings.port)
