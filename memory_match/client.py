# memory_match/client.py
from __future__ import annotations
import argparse
import json
from typing import Any, Dict, Optional

import requests


class ClientError(Exception):
    def __init__(self, message: str, status_code: Optional[int] = None):
        super().__init__(message)
        self.status_code = status_code


class MemoryMatchClient:
    """Thin wrapper over the memory match host's JSON routes."""

    def __init__(self, base_url: str = "http://127.0.0.1:5000", session=None, timeout: float = 5.0):
        self.base_url = base_url.rstrip("/")
        self.session = session if session is not None else requests.Session()
        self.timeout = timeout

    def _call(self, method: str, path: str, payload: Optional[Dict[str, Any]] = None) -> Dict[str, Any]:
        url = f"{self.base_url}{path}"
        try:
            if method == "GET":
                r = self.session.get(url, timeout=self.timeout)
            else:
                r = self.session.post(url, json=payload or {}, timeout=self.timeout)
        except requests.RequestException as e:
            raise ClientError(f"request to {url} failed: {e}") from e

        try:
            data = r.json()
        except ValueError:
            raise ClientError(f"non-JSON response from {url}", r.status_code) from None
        if r.status_code >= 400 or data.get("status") != "ok":
            raise ClientError(data.get("message", f"HTTP {r.status_code}"), r.status_code)
        return data

    def health(self) -> Dict[str, Any]:
        return self._call("GET", "/health")

    def difficulties(self):
        return self._call("GET", "/difficulties")["difficulties"]

    def new_game(self, difficulty: str) -> Dict[str, Any]:
        return self._call("POST", "/new", {"difficulty": difficulty})["state"]

    def flip(self, index: int) -> Dict[str, Any]:
        return self._call("POST", "/flip", {"index": index})

    def state(self) -> Dict[str, Any]:
        return self._call("GET", "/state")["state"]

    def restart(self) -> Dict[str, Any]:
        return self._call("POST", "/restart")["state"]

    def back(self) -> Dict[str, Any]:
        return self._call("POST", "/back")

    def teardown(self) -> Dict[str, Any]:
        return self._call("POST", "/teardown")["state"]

    def progress(self) -> Dict[str, int]:
        return self._call("GET", "/progress")["progress"]

    def reset_progress(self) -> Dict[str, int]:
        return self._call("POST", "/progress/reset")["progress"]


def render_grid(state: Dict[str, Any]) -> str:
    """Plain-text grid of a state snapshot, ``?`` for face-down cards."""
    cards = state.get("cards") or []
    columns = state.get("columns") or 4
    cells = []
    for i, card in enumerate(cards):
        if card["matched"]:
            label = f"[{card['content']}]"
        elif card["face_up"]:
            label = card["content"]
        else:
            label = "?"
        cells.append(f"{i:>2}:{label:<11}")
    rows = [" ".join(cells[i:i + columns]) for i in range(0, len(cells), columns)]
    footer = (
        f"phase={state['phase']} moves={state['moves']} "
        f"pairs={state['matched_pairs']}/{state.get('pairs') or 0} time={state['time']}"
    )
    if state.get("complete"):
        footer += f" stars={state['stars_earned']}"
    return "\n".join(rows + [footer])


def parse_args(argv=None):
    ap = argparse.ArgumentParser(description="Memory match command-line client")
    ap.add_argument("--url", default="http://127.0.0.1:5000")
    sub = ap.add_subparsers(dest="command", required=True)
    new = sub.add_parser("new", help="deal a new game")
    new.add_argument("difficulty", choices=["easy", "medium", "hard"])
    flip = sub.add_parser("flip", help="flip the card at an index")
    flip.add_argument("index", type=int)
    sub.add_parser("state")
    sub.add_parser("restart")
    sub.add_parser("back")
    sub.add_parser("progress")
    sub.add_parser("reset-progress")
    return ap.parse_args(argv)


def main(argv=None):
    a = parse_args(argv)
    client = MemoryMatchClient(a.url)
    try:
        if a.command == "new":
            print(render_grid(client.new_game(a.difficulty)))
        elif a.command == "flip":
            result = client.flip(a.index)
            if not result["flipped"]:
                print("(card not flipped)")
            print(render_grid(result["state"]))
        elif a.command == "state":
            print(render_grid(client.state()))
        elif a.command == "restart":
            print(render_grid(client.restart()))
        elif a.command == "back":
            result = client.back()
            print("back to difficulty picker" if result["left_game"] else "already at the picker")
        elif a.command == "progress":
            print(json.dumps(client.progress(), indent=2, sort_keys=True))
        elif a.command == "reset-progress":
            print(json.dumps(client.reset_progress(), indent=2, sort_keys=True))
    except ClientError as e:
        raise SystemExit(f"error: {e}")


if __name__ == "__main__":
    main()
