"""Flask command surface used by the chat adapter.

The adapter posts every slash command it receives to ``/command`` and relays
the returned reply back into the channel (or privately when ``public`` is
false). Room broadcasts go out on their own through the configured webhooks.
"""

from __future__ import annotations

import logging
import traceback
from typing import Any, Dict, Optional

from flask import Flask, jsonify, request

from .broadcast import WebhookBroadcaster
from .config import load_config
from .dispatcher import CommandRouter
from .games import GameManager, RoomRegistry
from .log_utils import CleanLogger, configure_logging
from .task_manager import TaskManager
from .task_store import TaskStore

logger = logging.getLogger("taskroom.server")


def build_router(config: Dict[str, Any], clean_log: Optional[CleanLogger] = None) -> CommandRouter:
    clean_log = clean_log or CleanLogger(enabled=config.get("clean_logs", True), debug=config.get("debug", False))
    broadcaster = WebhookBroadcaster(
        clean_log=clean_log,
        room_webhooks=config.get("room_webhooks"),
        default_url=config.get("default_webhook_url"),
        announce_url=config.get("announce_webhook_url"),
        timeout=config.get("webhook_timeout", 10),
    )
    store = TaskStore(config.get("task_data_dir") or "data/tasks")
    store.ensure_store()
    task_manager = TaskManager(
        store=store,
        clean_log=clean_log,
        announce=broadcaster.announce if broadcaster.announce_url else None,
        team_role_id=config.get("team_role_id"),
        chunk_size=config.get("list_chunk_size", 1800),
    )
    game_manager = GameManager(
        clean_log=clean_log,
        registry=RoomRegistry(),
        broadcast=broadcaster.send if broadcaster.has_room_delivery else None,
        secret_min=config.get("secret_min", 1),
        secret_max=config.get("secret_max", 100),
    )
    return CommandRouter(task_manager=task_manager, game_manager=game_manager)


def create_app(config: Optional[Dict[str, Any]] = None, router: Optional[CommandRouter] = None) -> Flask:
    config = config if config is not None else load_config()
    app = Flask(__name__)
    app.config["TASKROOM"] = config
    router = router or build_router(config)
    app.extensions["taskroom_router"] = router

    @app.route("/command", methods=["POST"])
    def command():
        data = request.get_json(silent=True)
        if not isinstance(data, dict):
            return jsonify({"ok": False, "error": "No JSON payload"}), 400
        text = data.get("text")
        actor = data.get("actor_id")
        channel_id = data.get("channel_id")
        if not text or actor in (None, "") or channel_id in (None, ""):
            return jsonify({"ok": False, "error": "Missing 'text', 'actor_id' or 'channel_id'"}), 400
        try:
            reply = router.handle(
                str(text),
                channel_id=channel_id,
                actor=str(actor),
                parent_id=data.get("parent_id"),
                is_thread=bool(data.get("is_thread", False)),
            )
        except Exception as exc:
            logger.error("command handler error: %s\n%s", exc, traceback.format_exc())
            return jsonify({"ok": False, "reply": "⚠️ Something went wrong, please try again.", "public": False}), 500
        if reply is None:
            return jsonify({"ok": True, "reply": None})
        return jsonify(
            {
                "ok": True,
                "reply": reply.text,
                "public": reply.public,
                "follow_ups": list(reply.follow_ups),
                "reason": reply.reason,
            }
        )

    @app.route("/healthz", methods=["GET"])
    def healthz():
        return jsonify({"ok": True, **router.game_manager.stats()})

    return app


def main() -> None:
    config = load_config()
    configure_logging(config.get("debug", False))
    app = create_app(config)
    logger.info("taskroom listening on %s:%s", config["flask_host"], config["flask_port"])
    app.run(host=config["flask_host"], port=config["flask_port"], debug=False)


if __name__ == "__main__":
    main()
