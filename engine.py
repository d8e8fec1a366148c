from __future__ import annotations
import logging
import threading
import uuid
from dataclasses import replace
from typing import Dict, Optional

from models import SessionState
from oracle import Oracle

logger = logging.getLogger(__name__)

EMPTY_GUESS_FEEDBACK = "Please enter your guess for the country."
STATUS_EMPTY = "Empty guess"
STATUS_CORRECT = "Correct!"
STATUS_CLOSE = "Close!"
STATUS_INCORRECT = "Incorrect"

class SessionBusyError(Exception):
    """An oracle call is already outstanding for this session."""

class SessionController:
    """
    Owns the state machine of one play-through.
    - start/restart: load a fresh challenge from the oracle.
    - submit_guess: judge the buffered guess; a correct one wins the round.
    At most one oracle call is outstanding at a time (guarded by is_busy).
    """
    def __init__(self, oracle: Oracle, session_id: Optional[str] = None):
        self.oracle = oracle
        self.state = SessionState(session_id=session_id or str(uuid.uuid4()))
        self._lock = threading.Lock()

    @property
    def session_id(self) -> str:
        return self.state.session_id

    def snapshot(self) -> SessionState:
        return replace(self.state)

    # ---------- Round lifecycle ----------
    def start(self) -> SessionState:
        with self._lock:
            if self.state.round_id > 0:
                raise ValueError("Session already started; use restart.")
        return self._load_challenge()

    def restart(self) -> SessionState:
        with self._lock:
            if self.state.is_busy:
                raise SessionBusyError("Wait for the current request to finish.")
            self.state.is_busy = True
        return self._load_challenge()

    def _load_challenge(self) -> SessionState:
        st = self.state
        st.is_busy = True
        st.round_id += 1
        st.challenge = None
        st.current_guess_text = ""
        st.feedback_message = ""
        st.status_label = ""
        st.guess_count = 0
        st.is_over = False
        st.last_guess_correct = False
        try:
            st.challenge = self.oracle.fetch_challenge()
        finally:
            st.is_busy = False
        logger.info("Session %s round %d ready", st.session_id, st.round_id)
        return self.snapshot()

    # ---------- Guess handling ----------
    def set_guess_text(self, text: str) -> SessionState:
        self.state.current_guess_text = text
        return self.snapshot()

    def submit_guess(self) -> SessionState:
        st = self.state
        with self._lock:
            if st.is_busy:
                raise SessionBusyError("Wait for the current request to finish.")
            if st.challenge is None:
                raise ValueError("No challenge loaded yet.")
            if st.is_over:
                raise ValueError("Round already won; restart to play again.")

            if st.current_guess_text.strip() == "":
                st.feedback_message = EMPTY_GUESS_FEEDBACK
                st.status_label = STATUS_EMPTY
                return self.snapshot()

            st.guess_count += 1
            st.is_busy = True
            st.feedback_message = ""
            st.status_label = ""
            st.last_guess_correct = False
            challenge = st.challenge
            guess = st.current_guess_text

        try:
            evaluation = self.oracle.evaluate_guess(challenge, guess)
            if evaluation.is_correct:
                # guess_count already includes the winning attempt
                st.feedback_message = self.oracle.fetch_win_message(st.guess_count, challenge.country)
                st.status_label = STATUS_CORRECT
                st.is_over = True
                st.last_guess_correct = True
                logger.info("Session %s won in %d guesses", st.session_id, st.guess_count)
            else:
                st.feedback_message = evaluation.feedback
                st.status_label = STATUS_CLOSE if evaluation.is_close else STATUS_INCORRECT
                st.current_guess_text = ""
                st.last_guess_correct = False
        finally:
            st.is_busy = False
        return self.snapshot()

class GameEngine:
    """
    Registry of independent sessions sharing one oracle.
    Holds at most max_sessions; the oldest session is dropped to make room.
    """
    def __init__(self, oracle: Oracle, max_sessions: int = 1000):
        self.oracle = oracle
        self.max_sessions = max(1, max_sessions)
        self._sessions: Dict[str, SessionController] = {}

    def start_session(self) -> SessionController:
        controller = SessionController(self.oracle)
        controller.start()
        # dicts keep insertion order, so the first key is the oldest session
        while len(self._sessions) >= self.max_sessions:
            oldest = next(iter(self._sessions))
            self._sessions.pop(oldest, None)
            logger.info("Session %s evicted (limit %d)", oldest, self.max_sessions)
        self._sessions[controller.session_id] = controller
        return controller

    def get_session(self, session_id: str) -> Optional[SessionController]:
        return self._sessions.get(session_id)

    def end_session(self, session_id: str) -> bool:
        return self._sessions.pop(session_id, None) is not None
