# cli.py
import logging

import click

from drive_api.adapters.metadata import FileMetadataStore
from drive_api.adapters.storage import ObjectStorage
from drive_api.aws.clients import AWSClientFactory
from drive_api.config.settings import get_settings
from drive_api.logging_config import configure_logging
from drive_api.sweep import sweep_orphans

# Configure logging
logger = logging.getLogger(__name__)


@click.group()
def cli():
    """CLI commands for running and maintaining the Cloud Drive API"""
    pass


@cli.command()
@click.option("--host", default=None, help="Interface to bind (defaults to HOST)")
@click.option("--port", default=None, type=int, help="Port to listen on (defaults to PORT)")
@click.option("--reload", is_flag=True, help="Reload on code changes (development only)")
def serve(host, port, reload):
    """Run the API server with uvicorn"""
    import uvicorn

    settings = get_settings()
    uvicorn.run(
        "drive_api.main:create_app",
        factory=True,
        host=host or settings.host,
        port=port or settings.port,
        reload=reload,
        log_level=settings.log_level.lower(),
    )


@cli.command()
def show_config():
    """Show current configuration"""
    settings = get_settings()

    click.echo("Current Configuration:")
    for key, value in settings.get_environment_dict().items():
        click.echo(f"  {key}: {value}")


@cli.command(name="sweep-orphans")
@click.option("--dry-run", is_flag=True, help="List orphaned objects without deleting them")
@click.option(
    "--grace-seconds",
    default=None,
    type=int,
    help="Skip objects younger than this (defaults to ORPHAN_GRACE_SECONDS)",
)
def sweep_orphans_command(dry_run, grace_seconds):
    """Delete stored objects that have no metadata record"""
    settings = get_settings()
    configure_logging(settings.log_level)
    factory = AWSClientFactory(settings)
    storage = ObjectStorage(factory.s3_client(), settings.s3_bucket, settings.aws_region)
    metadata_store = FileMetadataStore(factory.dynamodb_table())

    if grace_seconds is None:
        grace_seconds = settings.orphan_grace_seconds
    swept = sweep_orphans(storage, metadata_store, dry_run=dry_run, grace_seconds=grace_seconds)
    verb = "Would delete" if dry_run else "Deleted"
    for key in swept:
        click.echo(f"{verb}: {key}")
    click.echo(f"{verb} {len(swept)} orphaned object(s)")


if __name__ == "__main__":
    cli()
