"""Initial schema — profiles, media, playlists, ratings, user_shows, reviews

Revision ID: 0001
Revises: —
Create Date: 2026-10-19 00:00:00
"""
from typing import Sequence, Union

import sqlalchemy as sa
from alembic import op

revision: str = "0001"
down_revision: Union[str, None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def upgrade() -> None:
    # ── Trigger function (auto-update updated_at) ─────────────────────────────
    op.execute("""
        CREATE OR REPLACE FUNCTION set_updated_at()
        RETURNS trigger
        LANGUAGE plpgsql
        AS $$
        BEGIN
          NEW.updated_at = now();
          RETURN NEW;
        END;
        $$
    """)

    # ── profiles ──────────────────────────────────────────────────────────────
    op.create_table(
        "profiles",
        # Identity provider subject id (Supabase auth.users.id)
        sa.Column("user_id", sa.String(64), primary_key=True),
        sa.Column("username", sa.String(32), nullable=False),
        sa.Column("email", sa.String(255), nullable=True),
        sa.Column("about", sa.String(500), nullable=True),
        sa.Column("profile_image_url", sa.String(500), nullable=True),
        sa.Column("watched", sa.Integer, nullable=False, server_default=sa.text("0")),
        sa.Column("rated", sa.Integer, nullable=False, server_default=sa.text("0")),
        sa.Column("want_to_watch", sa.Integer, nullable=False, server_default=sa.text("0")),
        sa.Column("created_at", sa.DateTime(timezone=True),
                  nullable=False, server_default=sa.text("now()")),
        sa.Column("updated_at", sa.DateTime(timezone=True),
                  nullable=False, server_default=sa.text("now()")),
        sa.CheckConstraint(
            "watched >= 0 AND rated >= 0 AND want_to_watch >= 0",
            name="chk_profile_counters_non_negative",
        ),
    )
    op.create_index("ix_profiles_username", "profiles", ["username"], unique=True)
    op.execute("""
        CREATE TRIGGER trg_profiles_updated_at
        BEFORE UPDATE ON profiles
        FOR EACH ROW EXECUTE FUNCTION set_updated_at()
    """)

    # ── media ─────────────────────────────────────────────────────────────────
    op.create_table(
        "media",
        sa.Column("tmdb_id", sa.Integer, primary_key=True, autoincrement=False),
        sa.Column("title", sa.String(500), nullable=False),
        sa.Column("description", sa.Text, nullable=True),
        sa.Column("poster_url", sa.String(500), nullable=True),
        sa.Column("release_year", sa.Integer, nullable=True),
        sa.Column("producer", sa.String(255), nullable=True),
        sa.Column("created_at", sa.DateTime(timezone=True),
                  nullable=False, server_default=sa.text("now()")),
        sa.Column("updated_at", sa.DateTime(timezone=True),
                  nullable=False, server_default=sa.text("now()")),
        sa.CheckConstraint(
            "release_year IS NULL OR release_year BETWEEN 1800 AND 2200",
            name="chk_media_release_year",
        ),
    )
    op.execute("""
        CREATE TRIGGER trg_media_updated_at
        BEFORE UPDATE ON media
        FOR EACH ROW EXECUTE FUNCTION set_updated_at()
    """)

    # ── playlists ─────────────────────────────────────────────────────────────
    op.create_table(
        "playlists",
        sa.Column("id", sa.Integer, primary_key=True, autoincrement=True),
        sa.Column("name", sa.String(100), nullable=False),
        sa.Column("is_favorite", sa.Boolean, nullable=False, server_default=sa.text("false")),
        sa.Column("is_public", sa.Boolean, nullable=False, server_default=sa.text("true")),
        sa.Column("profile_id", sa.String(64),
                  sa.ForeignKey("profiles.user_id", ondelete="CASCADE"), nullable=False),
        sa.Column("created_at", sa.DateTime(timezone=True),
                  nullable=False, server_default=sa.text("now()")),
        sa.CheckConstraint("length(trim(name)) >= 1", name="chk_playlist_name"),
    )
    op.create_index("ix_playlists_profile_id", "playlists", ["profile_id"])
    # At most one Favorites playlist per profile; conflict target for find-or-create
    op.create_index(
        "uq_playlists_one_favorite",
        "playlists",
        ["profile_id"],
        unique=True,
        postgresql_where=sa.text("is_favorite = true"),
    )

    # ── playlist_media ────────────────────────────────────────────────────────
    op.create_table(
        "playlist_media",
        sa.Column("playlist_id", sa.Integer,
                  sa.ForeignKey("playlists.id", ondelete="CASCADE"), primary_key=True),
        sa.Column("media_tmdb_id", sa.Integer,
                  sa.ForeignKey("media.tmdb_id", ondelete="CASCADE"), primary_key=True),
        sa.Column("added_at", sa.DateTime(timezone=True),
                  nullable=False, server_default=sa.text("now()")),
    )

    # ── ratings ───────────────────────────────────────────────────────────────
    op.create_table(
        "ratings",
        sa.Column("id", sa.Integer, primary_key=True, autoincrement=True),
        sa.Column("profile_id", sa.String(64),
                  sa.ForeignKey("profiles.user_id", ondelete="CASCADE"), nullable=False),
        sa.Column("media_tmdb_id", sa.Integer,
                  sa.ForeignKey("media.tmdb_id", ondelete="CASCADE"), nullable=False),
        sa.Column("rating", sa.Integer, nullable=False),
        sa.Column("review", sa.Text, nullable=True),
        sa.Column("created_at", sa.DateTime(timezone=True),
                  nullable=False, server_default=sa.text("now()")),
        sa.Column("updated_at", sa.DateTime(timezone=True),
                  nullable=False, server_default=sa.text("now()")),
        sa.UniqueConstraint("profile_id", "media_tmdb_id", name="uq_rating_profile_media"),
        sa.CheckConstraint("rating BETWEEN 1 AND 5", name="chk_rating_range"),
    )
    op.create_index("ix_ratings_profile_id", "ratings", ["profile_id"])

    # ── user_shows ────────────────────────────────────────────────────────────
    op.create_table(
        "user_shows",
        sa.Column("profile_id", sa.String(64),
                  sa.ForeignKey("profiles.user_id", ondelete="CASCADE"), primary_key=True),
        sa.Column("media_tmdb_id", sa.Integer,
                  sa.ForeignKey("media.tmdb_id", ondelete="CASCADE"), primary_key=True),
        sa.Column("watched", sa.Boolean, nullable=False, server_default=sa.text("false")),
        sa.Column("listed", sa.Boolean, nullable=False, server_default=sa.text("false")),
        sa.Column("created_at", sa.DateTime(timezone=True),
                  nullable=False, server_default=sa.text("now()")),
        sa.Column("updated_at", sa.DateTime(timezone=True),
                  nullable=False, server_default=sa.text("now()")),
    )
    op.create_index("idx_user_shows_profile_watched", "user_shows", ["profile_id", "watched"])
    op.create_index("idx_user_shows_profile_listed", "user_shows", ["profile_id", "listed"])
    op.execute("""
        CREATE TRIGGER trg_user_shows_updated_at
        BEFORE UPDATE ON user_shows
        FOR EACH ROW EXECUTE FUNCTION set_updated_at()
    """)

    # ── reviews ───────────────────────────────────────────────────────────────
    op.create_table(
        "reviews",
        sa.Column("id", sa.Uuid, primary_key=True,
                  server_default=sa.text("gen_random_uuid()")),
        sa.Column("profile_id", sa.String(64),
                  sa.ForeignKey("profiles.user_id", ondelete="CASCADE"), nullable=False),
        sa.Column("media_tmdb_id", sa.Integer,
                  sa.ForeignKey("media.tmdb_id", ondelete="CASCADE"), nullable=False),
        sa.Column("rating", sa.Integer, nullable=False),
        sa.Column("comment", sa.Text, nullable=False, server_default=""),
        sa.Column("created_at", sa.DateTime(timezone=True),
                  nullable=False, server_default=sa.text("now()")),
        sa.Column("updated_at", sa.DateTime(timezone=True),
                  nullable=False, server_default=sa.text("now()")),
        sa.UniqueConstraint("profile_id", "media_tmdb_id", name="uq_review_profile_media"),
        sa.CheckConstraint("rating BETWEEN 1 AND 5", name="chk_review_rating_range"),
    )
    op.create_index("ix_reviews_profile_id", "reviews", ["profile_id", sa.text("created_at DESC")])
    op.create_index("ix_reviews_media_tmdb_id", "reviews", ["media_tmdb_id", sa.text("created_at DESC")])


def downgrade() -> None:
    op.drop_table("reviews")
    op.drop_table("user_shows")
    op.drop_table("ratings")
    op.drop_table("playlist_media")
    op.drop_table("playlists")
    op.drop_table("media")
    op.drop_table("profiles")
    op.execute("DROP FUNCTION IF EXISTS set_updated_at()")
