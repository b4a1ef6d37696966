"""
Dialect-aware INSERT .. ON CONFLICT builder.

Postgres and SQLite both expose on_conflict_do_nothing() / on_conflict_do_update()
with the same signature, so services build one statement and let the bound
dialect pick the construct.
"""
from sqlalchemy.dialects.postgresql import insert as pg_insert
from sqlalchemy.dialects.sqlite import insert as sqlite_insert
from sqlalchemy.orm import Session

_INSERTS = {
    "postgresql": pg_insert,
    "sqlite": sqlite_insert,
}


def insert_for(db: Session, model):
    """Return an upsert-capable INSERT for *model* on the session's dialect."""
    dialect = db.get_bind().dialect.name
    try:
        factory = _INSERTS[dialect]
    except KeyError:
        raise NotImplementedError(f"Upserts are not supported on dialect {dialect!r}") from None
    return factory(model)
