import unittest
from types import SimpleNamespace

from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool

from sceneit.core.security import Identity
from sceneit.db.models import Base, Playlist, Profile
from sceneit.schemas.media import UNKNOWN_TITLE
from sceneit.services.media_service import (
    MediaNotFoundError,
    ensure_media,
    get_media,
    get_media_or_raise,
    normalize_title,
)
from sceneit.services.playlist_service import (
    FavoritesPlaylistError,
    NotPlaylistOwnerError,
    PlaylistNotFoundError,
    add_favorite,
    add_media,
    create_playlist,
    delete_playlist,
    favorite_media,
    get_playlist,
    list_playlists,
    remove_favorite,
)
from sceneit.services.profile_service import DuplicateProfileError, ProfileNotFoundError, create_profile
from sceneit.services.rating_service import delete_rating, get_rating, save_rating
from sceneit.services.review_service import (
    NotReviewOwnerError,
    create_or_update_review,
    delete_review,
    list_reviews_for_show,
)
from sceneit.services.show_state_service import (
    get_show_state,
    list_user_shows,
    set_show_state,
    toggle_listed,
    toggle_watched,
)


def _media(title: str | None = "The Matrix", **fields) -> SimpleNamespace:
    catalog = {"description": None, "poster_url": None, "release_year": None, "producer": None}
    catalog.update(fields)
    return SimpleNamespace(title=title, **catalog)


class SQLiteServiceTestCase(unittest.TestCase):
    """Runs services against a private in-memory SQLite database."""

    def setUp(self) -> None:
        self.engine = create_engine(
            "sqlite://",
            connect_args={"check_same_thread": False},
            poolclass=StaticPool,
        )
        Base.metadata.create_all(self.engine)
        self.db = sessionmaker(bind=self.engine, autoflush=False, expire_on_commit=False)()
        self.alice = create_profile(self.db, Identity(subject_id="alice", email="a@example.com"), "alice")
        self.bob = create_profile(self.db, Identity(subject_id="bob"), "bob")

    def tearDown(self) -> None:
        self.db.close()
        Base.metadata.drop_all(self.engine)
        self.engine.dispose()

    def _profile(self, user_id: str) -> Profile:
        return self.db.query(Profile).filter(Profile.user_id == user_id).populate_existing().one()


class TestProfileService(SQLiteServiceTestCase):
    def test_email_falls_back_to_identity(self) -> None:
        self.assertEqual(self.alice.email, "a@example.com")
        self.assertEqual((self.alice.watched, self.alice.rated, self.alice.want_to_watch), (0, 0, 0))

    def test_second_profile_for_same_account_rejected(self) -> None:
        with self.assertRaises(DuplicateProfileError):
            create_profile(self.db, Identity(subject_id="alice"), "alice2")

    def test_username_taken_case_insensitive(self) -> None:
        with self.assertRaises(DuplicateProfileError):
            create_profile(self.db, Identity(subject_id="carol"), "ALICE")


class TestMediaService(SQLiteServiceTestCase):
    def test_normalize_title(self) -> None:
        self.assertEqual(normalize_title("  The   Matrix "), "The Matrix")
        self.assertEqual(normalize_title("   "), UNKNOWN_TITLE)
        self.assertEqual(normalize_title(None), UNKNOWN_TITLE)

    def test_ensure_media_creates_once_and_backfills(self) -> None:
        ensure_media(self.db, 603, None)
        ensure_media(self.db, 603, "The Matrix", poster_url="https://img/matrix.jpg", release_year=1999)
        ensure_media(self.db, 603, "Matrix (dub)", poster_url="https://img/other.jpg")
        self.db.commit()

        row = get_media(self.db, 603)
        self.assertEqual(row.title, "The Matrix")
        self.assertEqual(row.poster_url, "https://img/matrix.jpg")
        self.assertEqual(row.release_year, 1999)

    def test_get_media_or_raise_unknown_id(self) -> None:
        with self.assertRaises(MediaNotFoundError):
            get_media_or_raise(self.db, 424242)


class TestShowStateService(SQLiteServiceTestCase):
    def test_toggle_watched_twice_restores_counter(self) -> None:
        first = toggle_watched(self.db, "alice", 603, _media())
        self.assertTrue(first["watched"])
        self.assertTrue(first["changed"])
        self.assertEqual(first["counters"]["watched"], 1)

        second = toggle_watched(self.db, "alice", 603, _media())
        self.assertFalse(second["watched"])
        self.assertEqual(second["counters"]["watched"], 0)
        self.assertEqual(self._profile("alice").watched, 0)

    def test_flags_are_independent(self) -> None:
        toggle_listed(self.db, "alice", 603, _media())
        state = toggle_watched(self.db, "alice", 603, _media())

        self.assertTrue(state["watched"])
        self.assertTrue(state["listed"])
        self.assertEqual(state["counters"]["want_to_watch"], 1)
        self.assertEqual(state["counters"]["watched"], 1)

    def test_set_state_matching_is_no_op(self) -> None:
        set_show_state(self.db, "alice", 603, _media(), watched=True)
        again = set_show_state(self.db, "alice", 603, _media(), watched=True)

        self.assertFalse(again["changed"])
        self.assertEqual(again["counters"]["watched"], 1)

    def test_counters_are_per_profile(self) -> None:
        toggle_watched(self.db, "alice", 603, _media())
        toggle_watched(self.db, "bob", 603, _media())
        toggle_watched(self.db, "bob", 604, _media("The Matrix Reloaded"))

        self.assertEqual(self._profile("alice").watched, 1)
        self.assertEqual(self._profile("bob").watched, 2)

    def test_untouched_title_reads_false(self) -> None:
        state = get_show_state(self.db, "alice", 999)
        self.assertFalse(state["watched"])
        self.assertFalse(state["listed"])
        self.assertIsNone(state["rating"])

    def test_missing_profile_raises(self) -> None:
        with self.assertRaises(ProfileNotFoundError):
            toggle_watched(self.db, "ghost", 603, _media())

    def test_list_user_shows_filters(self) -> None:
        toggle_watched(self.db, "alice", 603, _media())
        toggle_listed(self.db, "alice", 604, _media("The Matrix Reloaded"))

        watched = list_user_shows(self.db, "alice", watched=True)
        self.assertEqual([row["tmdb_id"] for row in watched], [603])
        self.assertEqual(watched[0]["media"].title, "The Matrix")


class TestRatingService(SQLiteServiceTestCase):
    def test_rating_upsert_overwrites(self) -> None:
        _, rated = save_rating(self.db, "alice", 603, 3, "Fine.", media=_media())
        self.assertEqual(rated, 1)

        row, rated = save_rating(self.db, "alice", 603, 5, None, media=_media())
        self.assertEqual(rated, 1)
        self.assertEqual(row.rating, 5)
        self.assertEqual(row.review, "Fine.")

    def test_rating_shows_in_state(self) -> None:
        save_rating(self.db, "alice", 603, 4, "Holds up.", media=_media())
        state = get_show_state(self.db, "alice", 603)
        self.assertEqual(state["rating"], 4)
        self.assertEqual(state["review"], "Holds up.")

    def test_delete_rating_updates_counter(self) -> None:
        save_rating(self.db, "alice", 603, 4, media=_media())
        self.assertTrue(delete_rating(self.db, "alice", 603))
        self.assertFalse(delete_rating(self.db, "alice", 603))
        self.assertIsNone(get_rating(self.db, "alice", 603))
        self.assertEqual(self._profile("alice").rated, 0)


class TestPlaylistService(SQLiteServiceTestCase):
    def test_add_favorite_is_idempotent(self) -> None:
        favorites, added = add_favorite(self.db, "alice", 603, _media())
        self.assertTrue(added)
        self.assertTrue(favorites.is_favorite)
        self.assertFalse(favorites.is_public)

        again, added = add_favorite(self.db, "alice", 603, _media())
        self.assertFalse(added)
        self.assertEqual(again.id, favorites.id)
        self.assertEqual(len(again.playlist_media), 1)

    def test_one_favorites_playlist_per_profile(self) -> None:
        add_favorite(self.db, "alice", 603, _media())
        add_favorite(self.db, "alice", 604, _media("The Matrix Reloaded"))

        count = (
            self.db.query(Playlist)
            .filter(Playlist.profile_id == "alice", Playlist.is_favorite.is_(True))
            .count()
        )
        self.assertEqual(count, 1)
        self.assertEqual([entry["media_tmdb_id"] for entry in favorite_media(self.db, "alice")], [603, 604])

    def test_remove_favorite(self) -> None:
        add_favorite(self.db, "alice", 603, _media())
        self.assertTrue(remove_favorite(self.db, "alice", 603))
        self.assertFalse(remove_favorite(self.db, "alice", 603))
        self.assertFalse(remove_favorite(self.db, "bob", 603))

    def test_private_playlist_hidden_from_others(self) -> None:
        private = create_playlist(self.db, "alice", "Secret", is_public=False)
        create_playlist(self.db, "alice", "Open", is_public=True)

        self.assertEqual(get_playlist(self.db, private.id, viewer_id="alice").name, "Secret")
        with self.assertRaises(PlaylistNotFoundError):
            get_playlist(self.db, private.id, viewer_id="bob")
        self.assertEqual([p.name for p in list_playlists(self.db, "alice", viewer_id="bob")], ["Open"])
        self.assertEqual(len(list_playlists(self.db, "alice", viewer_id="alice")), 2)

    def test_only_owner_adds_media(self) -> None:
        playlist = create_playlist(self.db, "alice", "Sci-fi")
        with self.assertRaises(NotPlaylistOwnerError):
            add_media(self.db, playlist.id, "bob", 603, _media())

        _, added = add_media(self.db, playlist.id, "alice", 603, _media())
        self.assertTrue(added)

    def test_favorites_cannot_be_deleted(self) -> None:
        favorites, _ = add_favorite(self.db, "alice", 603, _media())
        with self.assertRaises(FavoritesPlaylistError):
            delete_playlist(self.db, favorites.id, "alice")


class TestReviewService(SQLiteServiceTestCase):
    def test_second_review_overwrites(self) -> None:
        first, created = create_or_update_review(self.db, "alice", 1399, 4, " Good ", media=_media("Game of Thrones"))
        self.assertTrue(created)
        self.assertEqual(first["comment"], "Good")

        second, created = create_or_update_review(self.db, "alice", 1399, 2, "Ending...", media=_media(None))
        self.assertFalse(created)
        self.assertEqual(second["id"], first["id"])
        self.assertEqual(second["rating"], 2)
        self.assertEqual(second["show_title"], "Game of Thrones")

        reviews = list_reviews_for_show(self.db, 1399)
        self.assertEqual(len(reviews), 1)
        self.assertEqual(reviews[0]["username"], "alice")

    def test_only_owner_deletes(self) -> None:
        review, _ = create_or_update_review(self.db, "alice", 1399, 4, media=_media("Game of Thrones"))
        with self.assertRaises(NotReviewOwnerError):
            delete_review(self.db, "bob", review["id"])
        self.assertTrue(delete_review(self.db, "alice", review["id"]))
        self.assertEqual(list_reviews_for_show(self.db, 1399), [])
