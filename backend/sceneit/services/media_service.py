"""
Media business logic — write-through cache of catalog (TMDB) metadata.

The service never calls the catalog itself. Callers pass whatever subset of
the catalog response they already hold; the first reference to a tmdb_id
creates the row, later references reuse it.
"""
import re
from typing import Any

from sqlalchemy.orm import Session

from sceneit.db.models import Media
from sceneit.db.upsert import insert_for
from sceneit.schemas.media import UNKNOWN_TITLE, MediaDetailResponse

# Columns filled in on an existing row when it still holds NULL.
BACKFILL_FIELDS = ("description", "poster_url", "release_year", "producer")


class MediaNotFoundError(Exception):
    """Raised when a media item cannot be found."""


def normalize_title(title: str | None) -> str:
    """Trim and collapse whitespace; empty titles become the placeholder."""
    if not title:
        return UNKNOWN_TITLE
    cleaned = re.sub(r"\s+", " ", title.strip())
    return cleaned[:500] or UNKNOWN_TITLE


def catalog_fields(payload: Any) -> dict[str, Any]:
    """Pull the cacheable catalog subset out of a request model."""
    return {name: getattr(payload, name, None) for name in BACKFILL_FIELDS}


def ensure_media(
    db: Session,
    tmdb_id: int,
    title: str | None,
    *,
    description: str | None = None,
    poster_url: str | None = None,
    release_year: int | None = None,
    producer: str | None = None,
) -> Media:
    """
    Insert-if-absent keyed by tmdb_id, then return the row.

    Safe to call on every request: the insert is a single
    INSERT .. ON CONFLICT DO NOTHING. Descriptive columns that are still NULL
    (and a placeholder title) are back-filled from the supplied values.
    Flushes but does not commit; the caller owns the transaction.
    """
    clean_title = normalize_title(title)
    supplied = {
        "description": description,
        "poster_url": poster_url,
        "release_year": release_year,
        "producer": producer,
    }

    stmt = (
        insert_for(db, Media)
        .values(tmdb_id=tmdb_id, title=clean_title, **supplied)
        .on_conflict_do_nothing(index_elements=[Media.tmdb_id])
    )
    db.execute(stmt)

    row = (
        db.query(Media)
        .filter(Media.tmdb_id == tmdb_id)
        .populate_existing()
        .one()
    )

    changed = False
    if row.title == UNKNOWN_TITLE and clean_title != UNKNOWN_TITLE:
        row.title = clean_title
        changed = True
    for name, value in supplied.items():
        if value is not None and getattr(row, name) is None:
            setattr(row, name, value)
            changed = True
    if changed:
        db.add(row)
        db.flush()
    return row


def ensure_media_from_payload(db: Session, tmdb_id: int, payload: Any) -> Media:
    """ensure_media() fed from any request model carrying the catalog subset."""
    return ensure_media(db, tmdb_id, getattr(payload, "title", None), **catalog_fields(payload))


def get_media(db: Session, tmdb_id: int) -> Media | None:
    """Fetch one cached media row by catalog id."""
    return db.query(Media).filter(Media.tmdb_id == tmdb_id).first()


def get_media_or_raise(db: Session, tmdb_id: int) -> Media:
    row = get_media(db, tmdb_id)
    if row is None:
        raise MediaNotFoundError(f"Media {tmdb_id} not found")
    return row


def map_media_response(row: Media) -> MediaDetailResponse:
    """Serialize ORM media row to a typed API response model."""
    return MediaDetailResponse(
        tmdb_id=row.tmdb_id,
        title=row.title,
        description=row.description,
        poster_url=row.poster_url,
        release_year=row.release_year,
        producer=row.producer,
        created_at=row.created_at,
        updated_at=row.updated_at,
    )
