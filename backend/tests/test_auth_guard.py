import time
import unittest
from unittest.mock import patch

from fastapi.testclient import TestClient
from jose import jwt
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool

from sceneit.core.security import Identity, IdentityProvider
from sceneit.db.models import Base, Media, Playlist, Profile, Rating, Review, UserShow
from sceneit.db.session import get_db
from sceneit.deps.auth import get_identity_provider
from sceneit.main import app
from sceneit.services.profile_service import create_profile

SECRET = "guard-secret"


def _token(secret: str = SECRET, **claims) -> str:
    payload = {"sub": "user-1", "aud": "authenticated", "exp": int(time.time()) + 300}
    payload.update(claims)
    return jwt.encode(payload, secret, algorithm="HS256")


def _bearer(token: str) -> dict:
    return {"Authorization": f"Bearer {token}"}


def _provider() -> IdentityProvider:
    return IdentityProvider(base_url="", jwt_secret=SECRET, audience="authenticated")


class TestRejectedTokensWriteNothing(unittest.TestCase):
    """Real token verification in front of a real SQLite store."""

    def setUp(self) -> None:
        self.engine = create_engine(
            "sqlite://",
            connect_args={"check_same_thread": False},
            poolclass=StaticPool,
        )
        Base.metadata.create_all(self.engine)
        self.Session = sessionmaker(bind=self.engine, autoflush=False, expire_on_commit=False)
        with self.Session() as db:
            create_profile(db, Identity(subject_id="user-1"), "cinephile")

        def override_get_db():
            db = self.Session()
            try:
                yield db
            finally:
                db.close()

        app.dependency_overrides[get_db] = override_get_db
        app.dependency_overrides[get_identity_provider] = _provider
        self.client = TestClient(app)

    def tearDown(self) -> None:
        app.dependency_overrides.clear()
        Base.metadata.drop_all(self.engine)
        self.engine.dispose()

    def _row_counts(self) -> dict:
        with self.Session() as db:
            return {
                model.__tablename__: db.query(model).count()
                for model in (Media, Playlist, Rating, Review, UserShow)
            }

    def _watched_counter(self) -> int:
        with self.Session() as db:
            return db.query(Profile.watched).filter(Profile.user_id == "user-1").scalar()

    def test_garbage_token_cannot_toggle(self) -> None:
        response = self.client.post(
            "/shows/603/watched",
            json={"title": "The Matrix"},
            headers=_bearer("not-a-jwt"),
        )

        self.assertEqual(response.status_code, 401)
        self.assertEqual(response.headers.get("www-authenticate"), "Bearer")
        self.assertEqual(set(self._row_counts().values()), {0})
        self.assertEqual(self._watched_counter(), 0)

    def test_expired_token_cannot_favorite(self) -> None:
        response = self.client.post(
            "/playlists/favorites",
            json={"tmdbId": 157336, "title": "Interstellar"},
            headers=_bearer(_token(exp=int(time.time()) - 60)),
        )

        self.assertEqual(response.status_code, 401)
        self.assertEqual(set(self._row_counts().values()), {0})

    def test_forged_token_cannot_rate_or_review(self) -> None:
        forged = _bearer(_token(secret="someone-elses-secret"))
        rating = self.client.post("/ratings", json={"mediaTmdbId": 603, "rating": 5}, headers=forged)
        review = self.client.post("/api/reviews", json={"showId": 1399, "rating": 5}, headers=forged)

        self.assertEqual(rating.status_code, 401)
        self.assertEqual(review.status_code, 401)
        self.assertEqual(set(self._row_counts().values()), {0})

    def test_valid_token_does_write(self) -> None:
        response = self.client.post(
            "/shows/603/watched",
            json={"title": "The Matrix"},
            headers=_bearer(_token()),
        )

        self.assertEqual(response.status_code, 200)
        self.assertEqual(self._row_counts()["user_shows"], 1)
        self.assertEqual(self._watched_counter(), 1)


class TestRejectedTokensSkipServices(unittest.TestCase):
    def setUp(self) -> None:
        self.client = TestClient(app)
        app.dependency_overrides[get_db] = lambda: iter([object()])
        app.dependency_overrides[get_identity_provider] = _provider

    def tearDown(self) -> None:
        app.dependency_overrides.clear()

    def test_bad_token_never_reaches_toggle(self) -> None:
        with patch("sceneit.api.shows.toggle_watched") as toggle:
            response = self.client.post("/shows/603/watched", headers=_bearer("not-a-jwt"))

        self.assertEqual(response.status_code, 401)
        toggle.assert_not_called()

    def test_wrong_audience_never_reaches_add_favorite(self) -> None:
        with patch("sceneit.api.playlists.add_favorite") as add:
            response = self.client.post(
                "/playlists/favorites",
                json={"tmdbId": 603, "title": "The Matrix"},
                headers=_bearer(_token(aud="anon")),
            )

        self.assertEqual(response.status_code, 401)
        add.assert_not_called()

    def test_bad_token_never_reaches_profile_create(self) -> None:
        with patch("sceneit.api.profiles.create_profile") as create:
            response = self.client.post(
                "/profiles",
                json={"username": "cinephile"},
                headers=_bearer(_token(secret="wrong")),
            )

        self.assertEqual(response.status_code, 401)
        create.assert_not_called()

    def test_public_read_treats_bad_token_as_anonymous(self) -> None:
        with patch("sceneit.api.playlists.list_playlists", return_value=[]) as list_all:
            response = self.client.get("/playlists/user/user-1", headers=_bearer("not-a-jwt"))

        self.assertEqual(response.status_code, 200)
        self.assertEqual(response.json(), {"playlists": []})
        self.assertIsNone(list_all.call_args.kwargs["viewer_id"])

    def test_public_read_with_valid_token_passes_viewer(self) -> None:
        with patch("sceneit.api.playlists.list_playlists", return_value=[]) as list_all:
            response = self.client.get("/playlists/user/user-1", headers=_bearer(_token()))

        self.assertEqual(response.status_code, 200)
        self.assertEqual(list_all.call_args.kwargs["viewer_id"], "user-1")
