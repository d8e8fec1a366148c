from __future__ import annotations
import argparse
import json
import sys
import time
from typing import Optional, Dict, Any, List

import requests

from config import Settings
from logging_setup import setup_logging

# -----------------------------
# Config defaults
# -----------------------------
SETTINGS = Settings.from_env()
DEFAULT_BASE_URL = SETTINGS.base_url
API_PREFIX = "/v1/regions"

# -----------------------------
# Simple HTTP client helpers
# -----------------------------
def _request(method: str, base_url: str, path: str, payload: Optional[Dict[str, Any]] = None) -> Dict[str, Any]:
    url = f"{base_url.rstrip('/')}{API_PREFIX}{path}"
    r = requests.request(method, url, json=payload, timeout=60)
    if r.status_code >= 400:
        print(f"\n[CLIENT] HTTP {r.status_code} from {url}")
        try:
            print("[CLIENT] Body:", r.json())
        except ValueError:
            print("[CLIENT] Body:", r.text[:1000])
        r.raise_for_status()
    return r.json()

# -----------------------------
# API wrappers
# -----------------------------
def get_status(base_url: str) -> Dict[str, Any]:
    return _request("GET", base_url, "/status")

def start_session(base_url: str) -> Dict[str, Any]:
    return _request("POST", base_url, "/sessions")

def submit_guess(base_url: str, session_id: str, guess: str) -> Dict[str, Any]:
    return _request("POST", base_url, f"/sessions/{session_id}/guess", {"guess": guess})

def restart(base_url: str, session_id: str) -> Dict[str, Any]:
    return _request("POST", base_url, f"/sessions/{session_id}/restart")

# -----------------------------
# Pretty printers
# -----------------------------
def print_challenge(state: Dict[str, Any]) -> None:
    print("\n===== REGIONS =====")
    for i, region in enumerate(state.get("regions") or [], start=1):
        print(f"  {i}. {region}")
    print(f"\n{state.get('prompt') or ''}")
    print("=" * 19)

def print_feedback(state: Dict[str, Any]) -> None:
    label = state.get("status_label") or ""
    msg = state.get("feedback_message") or ""
    print(f"[{label}] {msg}  (guesses: {state.get('guess_count', 0)})")

# -----------------------------
# Play loops
# -----------------------------
def interactive_play(base_url: str) -> None:
    status = get_status(base_url)
    if status.get("warning"):
        print(f"⚠️  {status['warning']}")

    state = start_session(base_url)
    sess_id = state["session_id"]
    print(f"\n✅ Session started: {sess_id}")
    print_challenge(state)

    while True:
        guess = input("\nYour guess (blank line to quit, '!restart' for new regions): ")
        if guess == "":
            break
        if guess.strip() == "!restart":
            state = restart(base_url, sess_id)
            print_challenge(state)
            continue
        state = submit_guess(base_url, sess_id, guess)
        print_feedback(state)
        if state["is_over"]:
            again = input("Play again? [y/N]: ").strip().lower()
            if again != "y":
                break
            state = restart(base_url, sess_id)
            print_challenge(state)

def auto_demo_play(base_url: str) -> None:
    """
    Runs a canned session for quick verification: two wrong guesses,
    then the answer revealed by the fallback challenge.
    """
    print("\n🤖 Running auto-demo...")
    state = start_session(base_url)
    sess_id = state["session_id"]
    print(f"✅ Session started: {sess_id}")
    print_challenge(state)

    demo_guesses: List[str] = ["", "Brazil", "Ghana", "Nigeria"]
    for guess in demo_guesses:
        print(f"\n> {guess!r}")
        state = submit_guess(base_url, sess_id, guess)
        print_feedback(state)
        if state["is_over"]:
            break
        time.sleep(0.5)

    print("\n===== SESSION STATE =====")
    print(json.dumps(state, indent=2))
    print("=" * 26)

def local_play() -> None:
    """Play in-process without a server, using the configured oracle."""
    from engine import GameEngine, SessionBusyError
    from oracle import build_oracle

    engine = GameEngine(oracle=build_oracle(SETTINGS))
    if not engine.oracle.live:
        print("⚠️  No OPENROUTER_API_KEY found. Playing with fallback data.")
    controller = engine.start_session()

    while True:
        st = controller.snapshot()
        print_challenge({"regions": st.challenge.regions, "prompt": st.challenge.prompt})
        while not controller.state.is_over:
            guess = input("\nYour guess (blank line to quit): ")
            if guess == "":
                return
            controller.set_guess_text(guess)
            try:
                st = controller.submit_guess()
            except SessionBusyError as e:
                print(f"⏳ {e}")
                continue
            print(f"[{st.status_label}] {st.feedback_message}  (guesses: {st.guess_count})")
        if input("Play again? [y/N]: ").strip().lower() != "y":
            return
        controller.restart()

# -----------------------------
# Run server (programmatically)
# -----------------------------
def run_server(port: int, host: str = "127.0.0.1", reload: bool = True) -> None:
    import uvicorn
    uvicorn.run("api:app", host=host, port=port, reload=reload)

# -----------------------------
# Health checker
# -----------------------------
def health_check(base_url: str) -> None:
    print(f"🔎 Checking server at {base_url} ...")
    try:
        status = get_status(base_url)
        print(f"✅ /status reachable (backend_available={status['backend_available']})")

        state = start_session(base_url)
        print(f"✅ JSON API ok (session_id={state['session_id']}, regions={len(state['regions'])})")
    except (requests.RequestException, KeyError) as e:
        print(f"❌ Health check failed: {e}")
        sys.exit(1)

# -----------------------------
# CLI
# -----------------------------
def parse_args(argv: Optional[List[str]] = None) -> argparse.Namespace:
    p = argparse.ArgumentParser(description="Region Guesser: server + client in one file")

    sub = p.add_subparsers(dest="cmd", required=True)

    ps = sub.add_parser("serve", help="Start the FastAPI server (uvicorn)")
    ps.add_argument("--port", type=int, default=8000, help="Port to bind")
    ps.add_argument("--host", type=str, default="127.0.0.1", help="Host to bind")
    ps.add_argument("--no-reload", action="store_true", help="Disable auto-reload")

    pp = sub.add_parser("play", help="Play against a running server (interactive or auto)")
    pp.add_argument("--base-url", type=str, default=DEFAULT_BASE_URL, help="API base URL")
    pp.add_argument("--auto-demo", action="store_true", help="Run a canned demo instead of prompting")

    sub.add_parser("local", help="Play in-process without a server")

    ph = sub.add_parser("health", help="Check server availability")
    ph.add_argument("--base-url", type=str, default=DEFAULT_BASE_URL, help="API base URL")

    return p.parse_args(argv)

def main(argv: Optional[List[str]] = None) -> None:
    args = parse_args(argv)
    setup_logging(SETTINGS.log_level, SETTINGS.log_file)

    if args.cmd == "serve":
        run_server(port=args.port, host=args.host, reload=(not args.no_reload))
        return

    if args.cmd == "play":
        try:
            get_status(args.base_url)
        except requests.RequestException:
            print("⚠️  Could not reach the server. Is it running?\n"
                  "    Start it in another terminal:\n"
                  "    python main.py serve --port 8000")
            sys.exit(1)

        if args.auto_demo:
            auto_demo_play(args.base_url)
        else:
            interactive_play(args.base_url)
        return

    if args.cmd == "local":
        local_play()
        return

    if args.cmd == "health":
        health_check(args.base_url)
        return

    print("Unknown command. Try: python main.py --help")
    sys.exit(2)

if __name__ == "__main__":
    main()
