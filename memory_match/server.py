# memory_match/server.py
from __future__ import annotations
import argparse
import logging
from typing import Dict, Optional

from flask import Flask, request, jsonify

from .config import Config, load_config
from .difficulty import Difficulty, all_difficulties
from .engine import MemoryMatchEngine
from .progress import JsonProgressStore
from .scheduler import ThreadingScheduler


def public_state(snapshot: Dict) -> Dict:
    """Hide the faces of cards that are still face down."""
    cards = []
    for card in snapshot["cards"]:
        if card["face_up"] or card["matched"]:
            cards.append(card)
        else:
            cards.append(dict(card, content=None, symbol=None))
    return dict(snapshot, cards=cards)


def create_app(config: Optional[Config] = None, engine: Optional[MemoryMatchEngine] = None) -> Flask:
    config = config or load_config()
    if engine is None:
        store = JsonProgressStore(config.progress_path)
        store.load()
        engine = MemoryMatchEngine(
            progress=store,
            scheduler=ThreadingScheduler(),
            match_delay=config.match_delay,
            mismatch_delay=config.mismatch_delay,
            tick_interval=config.tick_interval,
        )

    app = Flask(__name__)
    app.config["MEMORY_MATCH"] = config
    app.extensions["memory_match_engine"] = engine

    saved_generation = {"value": None}

    def save_on_complete(snapshot: Dict) -> None:
        if snapshot["complete"] and saved_generation["value"] != snapshot["generation"]:
            saved_generation["value"] = snapshot["generation"]
            engine.progress.save()
            app.logger.info("game complete in %d moves, progress saved", snapshot["moves"])

    engine.subscribe(save_on_complete)

    def error(message: str, code: int = 400):
        return jsonify({"status": "error", "message": message}), code

    def state_response(**extra):
        body = {"status": "ok", "state": public_state(engine.snapshot())}
        body.update(extra)
        return jsonify(body)

    @app.get("/health")
    def health():
        return jsonify({"status": "ok", "phase": engine.phase.value})

    @app.get("/difficulties")
    def difficulties():
        return jsonify({"status": "ok", "difficulties": all_difficulties()})

    @app.post("/new")
    def api_new():
        data = request.get_json(silent=True)
        if data is None:
            data = {}
        if not isinstance(data, dict):
            return error("expected a JSON object")
        if "difficulty" not in data:
            return error("missing 'difficulty'")
        try:
            difficulty = Difficulty.parse(data["difficulty"])
        except ValueError as e:
            return error(str(e))
        engine.start_game(difficulty)
        app.logger.info("new %s game", difficulty.value)
        return state_response()

    @app.post("/flip")
    def api_flip():
        data = request.get_json(silent=True)
        if not isinstance(data, dict):
            return error("expected a JSON object")
        index = data.get("index")
        # bool is an int subclass; JSON true must not mean card 1
        if not isinstance(index, int) or isinstance(index, bool):
            return error("'index' must be an integer")
        try:
            flipped = engine.flip_card(index)
        except IndexError as e:
            return error(str(e))
        return state_response(flipped=flipped)

    @app.get("/state")
    def api_state():
        return state_response()

    @app.post("/restart")
    def api_restart():
        try:
            engine.restart()
        except RuntimeError as e:
            return error(str(e), 409)
        return state_response()

    @app.post("/back")
    def api_back():
        left_game = engine.handle_back()
        return state_response(left_game=left_game)

    @app.post("/teardown")
    def api_teardown():
        engine.teardown()
        engine.progress.save()
        return state_response()

    @app.get("/progress")
    def api_progress():
        return jsonify({"status": "ok", "progress": engine.progress.as_dict()})

    @app.post("/progress/reset")
    def api_progress_reset():
        engine.progress.reset_progress()
        engine.progress.save()
        app.logger.info("progress reset")
        return jsonify({"status": "ok", "progress": engine.progress.as_dict()})

    return app


def parse_args(argv=None):
    p = argparse.ArgumentParser(description="Memory match game host")
    p.add_argument("-H", "--host", default=None)
    p.add_argument("-p", "--port", type=int, default=None)
    p.add_argument("--progress", default=None, help="path of the progress JSON file")
    p.add_argument("--debug", action="store_true")
    return p.parse_args(argv)


def apply_args(config: Config, a) -> Config:
    """Command-line flags win over the environment."""
    if a.host is not None:
        config.host = a.host
    if a.port is not None:
        config.port = a.port
    if a.progress is not None:
        config.progress_path = a.progress
    return config


def main(argv=None):
    a = parse_args(argv)
    config = apply_args(load_config(), a)
    logging.basicConfig(level=config.log_level, format="%(asctime)s %(levelname)s %(name)s: %(message)s")

    app = create_app(config)
    engine: MemoryMatchEngine = app.extensions["memory_match_engine"]
    try:
        # debug=True only for development
        app.run(host=config.host, port=config.port, debug=a.debug, use_reloader=False)
    finally:
        engine.teardown()
        engine.scheduler.shutdown()
        engine.progress.save()


if __name__ == "__main__":
    main()
