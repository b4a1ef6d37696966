import unittest
from types import SimpleNamespace
from unittest.mock import patch

from fastapi.testclient import TestClient

from sceneit.db.session import get_db
from sceneit.deps.auth import get_current_profile
from sceneit.main import app
from sceneit.services.profile_service import ProfileNotFoundError


def _state(**overrides) -> dict:
    state = {
        "tmdb_id": 603,
        "watched": True,
        "listed": False,
        "rating": None,
        "review": None,
        "changed": True,
        "counters": {"watched": 1, "rated": 0, "want_to_watch": 0},
    }
    state.update(overrides)
    return state


class TestShowsApi(unittest.TestCase):
    def setUp(self) -> None:
        self.client = TestClient(app)
        app.dependency_overrides[get_db] = lambda: iter([object()])

    def tearDown(self) -> None:
        app.dependency_overrides.clear()

    def _login(self, user_id: str = "user-1") -> None:
        app.dependency_overrides[get_current_profile] = lambda: SimpleNamespace(user_id=user_id)

    def test_toggle_requires_auth(self) -> None:
        response = self.client.post("/shows/603/watched", json={"title": "The Matrix"})
        self.assertEqual(response.status_code, 401)

    def test_toggle_watched_returns_counters(self) -> None:
        self._login()
        with patch("sceneit.api.shows.toggle_watched", return_value=_state()) as toggle:
            response = self.client.post("/shows/603/watched", json={"title": "The Matrix"})

        self.assertEqual(response.status_code, 200)
        payload = response.json()
        self.assertTrue(payload["watched"])
        self.assertEqual(payload["tmdbId"], 603)
        self.assertEqual(payload["counters"]["watched"], 1)
        self.assertEqual(toggle.call_args.args[1], "user-1")
        self.assertEqual(toggle.call_args.args[3].title, "The Matrix")

    def test_toggle_without_body_uses_placeholder_title(self) -> None:
        self._login()
        with patch("sceneit.api.shows.toggle_listed", return_value=_state(listed=True)) as toggle:
            response = self.client.post("/shows/603/listed")

        self.assertEqual(response.status_code, 200)
        self.assertEqual(toggle.call_args.args[3].title, "Unknown Show")

    def test_put_state_requires_a_flag(self) -> None:
        self._login()
        response = self.client.put("/shows/603/state", json={"title": "The Matrix"})
        self.assertEqual(response.status_code, 400)

    def test_put_state_passes_flags(self) -> None:
        self._login()
        with patch("sceneit.api.shows.set_show_state", return_value=_state(listed=True)) as set_state:
            response = self.client.put("/shows/603/state", json={"listed": True})

        self.assertEqual(response.status_code, 200)
        self.assertIsNone(set_state.call_args.kwargs["watched"])
        self.assertTrue(set_state.call_args.kwargs["listed"])

    def test_toggle_maps_missing_profile(self) -> None:
        self._login()
        with patch(
            "sceneit.api.shows.toggle_watched",
            side_effect=ProfileNotFoundError("missing"),
        ):
            response = self.client.post("/shows/603/watched")

        self.assertEqual(response.status_code, 404)

    def test_rejects_non_positive_tmdb_id(self) -> None:
        self._login()
        response = self.client.get("/shows/0/state")
        self.assertEqual(response.status_code, 400)
