import unittest
from datetime import datetime, timezone
from types import SimpleNamespace
from unittest.mock import patch

from fastapi.testclient import TestClient

from sceneit.core.security import Identity
from sceneit.db.session import get_db
from sceneit.deps.auth import get_current_identity, get_current_profile
from sceneit.main import app
from sceneit.services.profile_service import DuplicateProfileError


def _profile(**overrides) -> SimpleNamespace:
    fields = {
        "user_id": "user-1",
        "username": "cinephile",
        "email": "c@example.com",
        "about": None,
        "profile_image_url": None,
        "watched": 3,
        "rated": 1,
        "want_to_watch": 2,
        "created_at": datetime.now(timezone.utc),
    }
    fields.update(overrides)
    return SimpleNamespace(**fields)


class TestProfilesApi(unittest.TestCase):
    def setUp(self) -> None:
        self.client = TestClient(app)
        app.dependency_overrides[get_db] = lambda: iter([object()])

    def tearDown(self) -> None:
        app.dependency_overrides.clear()

    def test_create_requires_auth(self) -> None:
        response = self.client.post("/profiles", json={"username": "cinephile"})
        self.assertEqual(response.status_code, 401)
        self.assertEqual(response.headers.get("www-authenticate"), "Bearer")

    def test_create_uses_token_identity(self) -> None:
        app.dependency_overrides[get_current_identity] = lambda: Identity(subject_id="user-1")
        with patch("sceneit.api.profiles.create_profile", return_value=_profile()) as create:
            response = self.client.post("/profiles", json={"username": "cinephile"})

        self.assertEqual(response.status_code, 201)
        self.assertEqual(create.call_args.args[1].subject_id, "user-1")
        payload = response.json()
        self.assertEqual(payload["userId"], "user-1")
        self.assertEqual(payload["wantToWatch"], 2)

    def test_create_maps_duplicate_error(self) -> None:
        app.dependency_overrides[get_current_identity] = lambda: Identity(subject_id="user-1")
        with patch(
            "sceneit.api.profiles.create_profile",
            side_effect=DuplicateProfileError("Username is already taken"),
        ):
            response = self.client.post("/profiles", json={"username": "cinephile"})

        self.assertEqual(response.status_code, 409)

    def test_create_rejects_bad_username(self) -> None:
        app.dependency_overrides[get_current_identity] = lambda: Identity(subject_id="user-1")
        response = self.client.post("/profiles", json={"username": "no spaces!"})

        self.assertEqual(response.status_code, 400)
        self.assertEqual(response.json()["error"], "Missing or invalid fields.")
        self.assertIn("username", response.json()["fields"])

    def test_me_returns_current_profile(self) -> None:
        app.dependency_overrides[get_current_profile] = lambda: _profile(username="moviebuff")
        response = self.client.get("/profiles/me")

        self.assertEqual(response.status_code, 200)
        self.assertEqual(response.json()["username"], "moviebuff")

    def test_public_profile_hides_email(self) -> None:
        with patch("sceneit.api.profiles.get_profile", return_value=_profile(email="secret@example.com")):
            response = self.client.get("/profiles/user-1")

        self.assertEqual(response.status_code, 200)
        payload = response.json()
        self.assertEqual(payload["username"], "cinephile")
        self.assertNotIn("email", payload)
        self.assertNotIn("secret@example.com", response.text)

    def test_me_includes_email(self) -> None:
        app.dependency_overrides[get_current_profile] = lambda: _profile()
        response = self.client.get("/profiles/me")

        self.assertEqual(response.json()["email"], "c@example.com")

    def test_public_profile_404(self) -> None:
        with patch("sceneit.api.profiles.get_profile", return_value=None):
            response = self.client.get("/profiles/ghost")

        self.assertEqual(response.status_code, 404)


class TestSystemRoutes(unittest.TestCase):
    def setUp(self) -> None:
        self.client = TestClient(app)

    def tearDown(self) -> None:
        app.dependency_overrides.clear()

    def test_root_banner(self) -> None:
        response = self.client.get("/")
        self.assertEqual(response.status_code, 200)
        self.assertEqual(response.text, "Backend server ran successfully!")

    def test_health(self) -> None:
        response = self.client.get("/health")
        self.assertEqual(response.status_code, 200)
        self.assertTrue(response.json()["ok"])

    def test_private_ping_requires_auth(self) -> None:
        response = self.client.get("/private/ping")
        self.assertEqual(response.status_code, 401)

    def test_private_ping_echoes_identity(self) -> None:
        app.dependency_overrides[get_current_identity] = lambda: Identity(
            subject_id="user-1", email="c@example.com"
        )
        response = self.client.get("/private/ping")

        self.assertEqual(response.status_code, 200)
        self.assertEqual(response.json()["user"], {"id": "user-1", "email": "c@example.com"})
