"""Reclaim objects whose metadata record was never written.

Upload stores the object before the record, with no transaction between the
two. A failed record write leaves an object nobody can list or delete through
the API; this sweep finds and removes them.

An object without a record may also be an upload whose record write has not
happened yet, so objects younger than the grace period are never swept.
"""
import logging
from datetime import datetime, timedelta, timezone
from typing import List, Optional, Tuple
from uuid import UUID

from drive_api.adapters.metadata import FileMetadataStore
from drive_api.adapters.storage import ObjectStorage

logger = logging.getLogger(__name__)

FILE_ID_LENGTH = 36
DEFAULT_GRACE_SECONDS = 3600


def parse_object_key(key: str) -> Optional[Tuple[str, str]]:
    """Split ``<userId>/<fileId>-<filename>`` into ``(userId, fileId)``.

    Returns None for keys that do not follow the layout.
    """
    user_id, sep, rest = key.partition("/")
    if not sep or not user_id or len(rest) <= FILE_ID_LENGTH or rest[FILE_ID_LENGTH] != "-":
        return None
    file_id = rest[:FILE_ID_LENGTH]
    try:
        UUID(file_id)
    except ValueError:
        return None
    return user_id, file_id


def find_orphans(
    storage: ObjectStorage,
    metadata_store: FileMetadataStore,
    grace_seconds: int = DEFAULT_GRACE_SECONDS,
    now: Optional[datetime] = None,
) -> List[str]:
    cutoff = (now or datetime.now(timezone.utc)) - timedelta(seconds=grace_seconds)
    orphans = []
    for obj in storage.list_objects():
        parsed = parse_object_key(obj.key)
        if parsed is None:
            logger.debug(f"Skipping key outside the layout: {obj.key}")
            continue
        if obj.last_modified > cutoff:
            logger.debug(f"Skipping recent object: {obj.key}")
            continue
        if not metadata_store.exists(*parsed):
            orphans.append(obj.key)
    return orphans


def sweep_orphans(
    storage: ObjectStorage,
    metadata_store: FileMetadataStore,
    dry_run: bool = False,
    grace_seconds: int = DEFAULT_GRACE_SECONDS,
    now: Optional[datetime] = None,
) -> List[str]:
    """Delete every orphaned object older than ``grace_seconds`` and return their keys."""
    orphans = find_orphans(storage, metadata_store, grace_seconds=grace_seconds, now=now)
    logger.info(f"Found {len(orphans)} orphaned object(s)")
    if dry_run:
        return orphans
    for key in orphans:
        storage.delete(key)
    return orphans
