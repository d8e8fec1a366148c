from __future__ import annotations
from dataclasses import dataclass
from typing import Optional, Tuple

@dataclass(frozen=True)
class Challenge:
    regions: Tuple[str, ...]
    country: str
    prompt: str

@dataclass(frozen=True)
class GuessEvaluation:
    is_correct: bool
    feedback: str
    # Only meaningful for wrong guesses
    is_close: bool = False

DEFAULT_CHALLENGE = Challenge(
    regions=("Oyo", "Lagos", "Borno"),
    country="Nigeria",
    prompt="These regions are all part of which nation?",
)

# Phases of a session, derived from the state flags
PHASE_UNINITIALIZED = "uninitialized"
PHASE_LOADING = "loading"
PHASE_AWAITING_GUESS = "awaiting_guess"
PHASE_EVALUATING = "evaluating"
PHASE_WON = "won"

@dataclass
class SessionState:
    session_id: str
    round_id: int = 0
    challenge: Optional[Challenge] = None
    current_guess_text: str = ""
    feedback_message: str = ""
    status_label: str = ""
    guess_count: int = 0
    is_busy: bool = True
    is_over: bool = False
    last_guess_correct: bool = False

    @property
    def phase(self) -> str:
        if self.is_over:
            return PHASE_WON
        if self.challenge is None:
            return PHASE_LOADING if self.round_id > 0 else PHASE_UNINITIALIZED
        if self.is_busy:
            return PHASE_EVALUATING
        return PHASE_AWAITING_GUESS
