from __future__ import annotations
from typing import List, Optional

from fastapi import FastAPI, HTTPException, Response
from pydantic import BaseModel, Field

from config import Settings, is_backend_available
from engine import GameEngine, SessionController, SessionBusyError
from logging_setup import setup_logging
from models import SessionState
from oracle import build_oracle

FALLBACK_WARNING = (
    "OpenRouter API key not found. AI-powered features are disabled. "
    "The game will use basic fallback data."
)

# ---------- Pydantic IO models ----------
class StatusOut(BaseModel):
    backend_available: bool
    warning: Optional[str] = None

class GuessTextIn(BaseModel):
    text: str = Field(..., examples=["Nigeria"])

class GuessIn(BaseModel):
    guess: Optional[str] = Field(None, examples=["Nigeria"])

class SessionStateOut(BaseModel):
    session_id: str
    round_id: int
    phase: str
    regions: List[str]
    prompt: Optional[str] = None
    current_guess_text: str
    feedback_message: str
    status_label: str
    guess_count: int
    is_busy: bool
    is_over: bool
    last_guess_correct: bool
    # Only revealed once the round is won
    country: Optional[str] = None

# ---------- App ----------
settings = Settings.from_env()
setup_logging(settings.log_level, settings.log_file)

app = FastAPI(title="Region Guesser API", version="1.0.0")

_backend_available = is_backend_available(settings)
_engine = GameEngine(oracle=build_oracle(settings), max_sessions=settings.max_sessions)

def _to_state_out(st: SessionState) -> SessionStateOut:
    ch = st.challenge
    return SessionStateOut(
        session_id=st.session_id,
        round_id=st.round_id,
        phase=st.phase,
        regions=list(ch.regions) if ch else [],
        prompt=ch.prompt if ch else None,
        current_guess_text=st.current_guess_text,
        feedback_message=st.feedback_message,
        status_label=st.status_label,
        guess_count=st.guess_count,
        is_busy=st.is_busy,
        is_over=st.is_over,
        last_guess_correct=st.last_guess_correct,
        country=ch.country if ch and st.is_over else None,
    )

def _require_session(session_id: str) -> SessionController:
    controller = _engine.get_session(session_id)
    if not controller:
        raise HTTPException(404, "Session not found")
    return controller

@app.get("/v1/regions/status", response_model=StatusOut, response_model_exclude_none=True)
def get_status():
    return StatusOut(
        backend_available=_backend_available,
        warning=None if _backend_available else FALLBACK_WARNING,
    )

@app.post("/v1/regions/sessions", response_model=SessionStateOut)
def start_session():
    controller = _engine.start_session()
    return _to_state_out(controller.snapshot())

@app.get("/v1/regions/sessions/{session_id}", response_model=SessionStateOut)
def get_state(session_id: str):
    return _to_state_out(_require_session(session_id).snapshot())

@app.put("/v1/regions/sessions/{session_id}/guess-text", response_model=SessionStateOut)
def set_guess_text(session_id: str, payload: GuessTextIn):
    st = _require_session(session_id).set_guess_text(payload.text)
    return _to_state_out(st)

@app.post("/v1/regions/sessions/{session_id}/guess", response_model=SessionStateOut)
def submit_guess(session_id: str, payload: GuessIn):
    controller = _require_session(session_id)
    try:
        if payload.guess is not None:
            controller.set_guess_text(payload.guess)
        st = controller.submit_guess()
        return _to_state_out(st)
    except SessionBusyError as e:
        raise HTTPException(status_code=409, detail=str(e))
    except ValueError as e:
        raise HTTPException(status_code=400, detail=str(e))

@app.post("/v1/regions/sessions/{session_id}/restart", response_model=SessionStateOut)
def restart(session_id: str):
    controller = _require_session(session_id)
    try:
        return _to_state_out(controller.restart())
    except SessionBusyError as e:
        raise HTTPException(status_code=409, detail=str(e))

@app.delete("/v1/regions/sessions/{session_id}", status_code=204)
def end_session(session_id: str):
    if not _engine.end_session(session_id):
        raise HTTPException(404, "Session not found")
    return Response(status_code=204)
