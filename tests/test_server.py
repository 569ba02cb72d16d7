from __future__ import annotations

import sys
import tempfile
import unittest
from pathlib import Path

PROJECT_ROOT = Path(__file__).resolve().parents[1]
if str(PROJECT_ROOT) not in sys.path:
    sys.path.insert(0, str(PROJECT_ROOT))

from taskroom.config import DEFAULT_CONFIG
from taskroom.server import create_app


class ServerTests(unittest.TestCase):
    def setUp(self) -> None:
        self._tmp = tempfile.TemporaryDirectory()
        config = dict(DEFAULT_CONFIG)
        config["task_data_dir"] = self._tmp.name
        self.app = create_app(config)
        self.client = self.app.test_client()

    def tearDown(self) -> None:
        self._tmp.cleanup()

    def _post(self, text, actor="u1", channel="c-1", **extra):
        payload = {"text": text, "actor_id": actor, "channel_id": channel}
        payload.update(extra)
        return self.client.post("/command", json=payload)

    def test_task_round_trip(self):
        resp = self._post("/task add Book venue")
        self.assertEqual(resp.status_code, 200)
        body = resp.get_json()
        self.assertTrue(body["ok"])
        self.assertTrue(body["public"])
        self.assertIn("Book venue", body["reply"])

        listing = self._post("/task list").get_json()
        self.assertFalse(listing["public"])
        self.assertEqual(listing["follow_ups"], [])
        self.assertIn("Book venue", listing["reply"])

    def test_game_answer_is_private(self):
        self._post("/game2 host", actor="h")
        self._post("/game2 start", actor="h")
        body = self._post("/game2 answer 49", actor="p").get_json()
        self.assertFalse(body["public"])

    def test_thread_payload(self):
        self._post("/task add Book venue")
        body = self._post("/task list", channel="t-2", parent_id="c-1", is_thread=True).get_json()
        self.assertIn("Book venue", body["reply"])

    def test_plain_text_gives_empty_reply(self):
        body = self._post("just chatting").get_json()
        self.assertEqual(body, {"ok": True, "reply": None})

    def test_missing_fields(self):
        resp = self.client.post("/command", json={"text": "/games"})
        self.assertEqual(resp.status_code, 400)
        resp = self.client.post("/command", data="nope", content_type="text/plain")
        self.assertEqual(resp.status_code, 400)

    def test_healthz_ignores_lookups(self):
        self._post("/game1 status")
        self._post("/gift list")
        self.assertEqual(self.client.get("/healthz").get_json(), {"ok": True, "rooms": 0})

    def test_healthz(self):
        self._post("/game1 host", actor="h")
        body = self.client.get("/healthz").get_json()
        self.assertEqual(body, {"ok": True, "rooms": 1})


if __name__ == "__main__":
    unittest.main()
