import threading

import pytest
from engine import GameEngine, SessionController, SessionBusyError
from models import GuessEvaluation, PHASE_AWAITING_GUESS, PHASE_UNINITIALIZED, PHASE_WON
from oracle import FallbackOracle

class RecordingOracle(FallbackOracle):
    """Fallback oracle that records every call made to it."""
    def __init__(self):
        self.calls = []
    def fetch_challenge(self):
        self.calls.append(("fetch_challenge",))
        return super().fetch_challenge()
    def evaluate_guess(self, challenge, guess_text):
        self.calls.append(("evaluate_guess", guess_text))
        return super().evaluate_guess(challenge, guess_text)
    def fetch_win_message(self, guess_count, secret_country):
        self.calls.append(("fetch_win_message", guess_count, secret_country))
        return super().fetch_win_message(guess_count, secret_country)

class CloseOracle(FallbackOracle):
    def evaluate_guess(self, challenge, guess_text):
        return GuessEvaluation(is_correct=False, feedback="Getting close!", is_close=True)

def _started(oracle=None):
    ctl = SessionController(oracle or RecordingOracle())
    ctl.start()
    return ctl

def _guess(ctl, text):
    ctl.set_guess_text(text)
    return ctl.submit_guess()

def test_new_session_is_uninitialized_and_busy():
    ctl = SessionController(FallbackOracle())
    st = ctl.snapshot()
    assert st.challenge is None
    assert st.is_busy is True
    assert st.phase == PHASE_UNINITIALIZED

def test_start_loads_challenge():
    ctl = _started()
    st = ctl.snapshot()
    assert st.challenge.country == "Nigeria"
    assert len(st.challenge.regions) == 3
    assert st.is_busy is False
    assert st.round_id == 1
    assert st.phase == PHASE_AWAITING_GUESS

def test_start_twice_rejected():
    ctl = _started()
    with pytest.raises(ValueError):
        ctl.start()

def test_correct_guess_wins_on_first_try():
    oracle = RecordingOracle()
    ctl = _started(oracle)
    st = _guess(ctl, "nigeria")
    assert st.is_over is True
    assert st.last_guess_correct is True
    assert st.status_label == "Correct!"
    assert st.feedback_message == "You got it in 1 try! The country was: Nigeria."
    assert st.guess_count == 1
    assert st.is_busy is False
    assert st.phase == PHASE_WON
    assert ("fetch_win_message", 1, "Nigeria") in oracle.calls

def test_wrong_guess_feedback_and_cleared_input():
    ctl = _started()
    st = _guess(ctl, "brazil")
    assert st.feedback_message == "Not quite. The answer isn't \"brazil\"."
    assert st.status_label == "Incorrect"
    assert st.current_guess_text == ""
    assert st.last_guess_correct is False
    assert st.is_over is False
    assert st.guess_count == 1

def test_close_guess_status():
    ctl = _started(CloseOracle())
    st = _guess(ctl, "Niger")
    assert st.status_label == "Close!"
    assert st.feedback_message == "Getting close!"

@pytest.mark.parametrize("text", ["", "   ", "\t\n"])
def test_empty_guess_is_local(text):
    oracle = RecordingOracle()
    ctl = _started(oracle)
    before = list(oracle.calls)
    st = _guess(ctl, text)
    assert oracle.calls == before
    assert st.guess_count == 0
    assert st.feedback_message == "Please enter your guess for the country."
    assert st.status_label == "Empty guess"

def test_win_after_two_misses_counts_winning_guess():
    oracle = RecordingOracle()
    ctl = _started(oracle)
    _guess(ctl, "brazil")
    _guess(ctl, "ghana")
    st = _guess(ctl, "Nigeria")
    assert st.guess_count == 3
    assert st.is_over is True
    assert st.feedback_message == "You got it in 3 tries! The country was: Nigeria."
    assert ("fetch_win_message", 3, "Nigeria") in oracle.calls

def test_guess_count_increments_once_per_submission():
    ctl = _started()
    for text in ["a", "", "b", "  ", "c"]:
        _guess(ctl, text)
    assert ctl.snapshot().guess_count == 3

def test_is_over_sticks_until_restart():
    ctl = _started()
    _guess(ctl, "Nigeria")
    ctl.set_guess_text("brazil")
    with pytest.raises(ValueError):
        ctl.submit_guess()
    assert ctl.snapshot().is_over is True

    st = ctl.restart()
    assert st.is_over is False
    assert st.guess_count == 0
    assert st.feedback_message == ""
    assert st.status_label == ""
    assert st.current_guess_text == ""
    assert st.last_guess_correct is False
    assert st.round_id == 2
    assert st.challenge is not None

def test_restart_mid_round_resets_count():
    ctl = _started()
    _guess(ctl, "brazil")
    _guess(ctl, "chile")
    st = ctl.restart()
    assert st.guess_count == 0
    assert st.round_id == 2

def test_busy_session_rejects_submit_and_restart():
    ctl = _started()
    ctl.state.is_busy = True
    ctl.set_guess_text("Nigeria")
    with pytest.raises(SessionBusyError):
        ctl.submit_guess()
    with pytest.raises(SessionBusyError):
        ctl.restart()

def test_snapshot_is_independent_copy():
    ctl = _started()
    snap = ctl.snapshot()
    snap.guess_count = 99
    assert ctl.state.guess_count == 0

def test_engine_sessions_are_independent():
    eng = GameEngine(oracle=FallbackOracle())
    a = eng.start_session()
    b = eng.start_session()
    assert a.session_id != b.session_id
    _guess(a, "Nigeria")
    assert a.snapshot().is_over is True
    assert b.snapshot().is_over is False
    assert eng.get_session(a.session_id) is a
    assert eng.end_session(a.session_id) is True
    assert eng.get_session(a.session_id) is None
    assert eng.end_session(a.session_id) is False

class ReleaseHookLock:
    """Lock that runs a callback right after each release."""
    def __init__(self, on_release):
        self._lock = threading.Lock()
        self.on_release = on_release
    def __enter__(self):
        self._lock.acquire()
        return self
    def __exit__(self, *exc):
        self._lock.release()
        self.on_release()
        return False

def test_submit_evaluates_text_buffered_under_lock():
    oracle = RecordingOracle()
    ctl = _started(oracle)
    ctl.set_guess_text("brazil")
    # A guess-text update landing right after the guard section
    ctl._lock = ReleaseHookLock(lambda: ctl.set_guess_text("Nigeria"))
    st = ctl.submit_guess()
    assert ("evaluate_guess", "brazil") in oracle.calls
    assert st.is_over is False
    assert st.status_label == "Incorrect"

def test_engine_evicts_oldest_session_at_limit():
    eng = GameEngine(oracle=FallbackOracle(), max_sessions=2)
    a = eng.start_session()
    b = eng.start_session()
    c = eng.start_session()
    assert eng.get_session(a.session_id) is None
    assert eng.get_session(b.session_id) is b
    assert eng.get_session(c.session_id) is c

def test_engine_session_with_nested_live_payload_still_loads():
    from openrouter_client import OpenRouterClient
    from oracle import LiveOracle
    from models import DEFAULT_CHALLENGE

    class NestedClient(OpenRouterClient):
        def __init__(self): pass
        def chat(self, messages, **kwargs):
            return "[" * 100000

    eng = GameEngine(oracle=LiveOracle(NestedClient()))
    ctl = eng.start_session()
    assert ctl.snapshot().challenge == DEFAULT_CHALLENGE
    assert eng.get_session(ctl.session_id) is ctl
