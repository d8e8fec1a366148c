from __future__ import annotations
import json
import logging
import re
from abc import ABC, abstractmethod
from typing import Any, Optional

from config import Settings, is_backend_available
from models import Challenge, GuessEvaluation, DEFAULT_CHALLENGE
from openrouter_client import OpenRouterClient, OpenRouterError
from prompts import ORACLE_SYSTEM_PROMPT, CHALLENGE_PROMPT, evaluation_prompt, win_message_prompt

logger = logging.getLogger(__name__)

_FENCE_RE = re.compile(r"^```(\w*)?\s*\n?(.*?)\n?\s*```$", re.DOTALL)

NEUTRAL_WRONG_FEEDBACK = "Not the nation these regions call home. Try again!"

def strip_code_fence(text: str) -> str:
    text = text.strip()
    match = _FENCE_RE.match(text)
    if match and match.group(2):
        return match.group(2).strip()
    return text

def _mentions(text: str, name: str) -> bool:
    """Whole-word, case-insensitive search for name in text."""
    return re.search(rf"\b{re.escape(name.strip())}\b", text, re.IGNORECASE) is not None

def fallback_evaluation(challenge: Challenge, guess_text: str) -> GuessEvaluation:
    """Case-insensitive, whitespace-trimmed exact match against the secret country."""
    is_correct = guess_text.strip().lower() == challenge.country.strip().lower()
    if is_correct:
        return GuessEvaluation(is_correct=True, feedback="Correct!", is_close=False)
    return GuessEvaluation(
        is_correct=False,
        feedback=f"Not quite. The answer isn't \"{guess_text}\".",
        is_close=False,
    )

def fallback_win_message(guess_count: int, secret_country: str) -> str:
    tries = "try" if guess_count == 1 else "tries"
    return f"You got it in {guess_count} {tries}! The country was: {secret_country}."

def parse_challenge(payload: Any) -> Optional[Challenge]:
    """Validate a decoded challenge payload; None when the shape is wrong."""
    if not isinstance(payload, dict):
        return None
    regions = payload.get("regions")
    country = payload.get("country")
    prompt = payload.get("prompt")
    if not isinstance(regions, list) or len(regions) != 3:
        return None
    if not all(isinstance(r, str) and r.strip() for r in regions):
        return None
    cleaned = tuple(r.strip() for r in regions)
    if len({r.lower() for r in cleaned}) != 3:
        return None
    if not isinstance(country, str) or not country.strip():
        return None
    if not isinstance(prompt, str) or not prompt.strip():
        return None
    return Challenge(regions=cleaned, country=country.strip(), prompt=prompt.strip())

def parse_evaluation(payload: Any) -> Optional[GuessEvaluation]:
    """Validate a decoded evaluation payload; None when the shape is wrong."""
    if not isinstance(payload, dict):
        return None
    is_correct = payload.get("isCorrect")
    feedback = payload.get("feedback")
    is_close = payload.get("isClose")
    if not isinstance(is_correct, bool):
        return None
    if not isinstance(feedback, str) or not feedback.strip():
        return None
    if not isinstance(is_close, bool) or is_correct:
        is_close = False
    return GuessEvaluation(is_correct=is_correct, feedback=feedback.strip(), is_close=is_close)

class Oracle(ABC):
    """
    Content generation and guess judging for the game.
    Every operation is total: implementations never raise to the caller.
    """
    live = False

    @abstractmethod
    def fetch_challenge(self) -> Challenge: ...

    @abstractmethod
    def evaluate_guess(self, challenge: Challenge, guess_text: str) -> GuessEvaluation: ...

    @abstractmethod
    def fetch_win_message(self, guess_count: int, secret_country: str) -> str: ...

class FallbackOracle(Oracle):
    """Deterministic local oracle used when no backend credential is configured."""

    def fetch_challenge(self) -> Challenge:
        return DEFAULT_CHALLENGE

    def evaluate_guess(self, challenge: Challenge, guess_text: str) -> GuessEvaluation:
        return fallback_evaluation(challenge, guess_text)

    def fetch_win_message(self, guess_count: int, secret_country: str) -> str:
        return fallback_win_message(guess_count, secret_country)

class LiveOracle(Oracle):
    """
    Oracle backed by a generative model on OpenRouter.
    Any transport failure or malformed payload degrades that single call
    to the FallbackOracle result.
    """
    live = True

    def __init__(self, client: OpenRouterClient, fallback: Optional[Oracle] = None):
        self.client = client
        self.fallback = fallback or FallbackOracle()

    # ---------- remote calls ----------
    def _messages(self, prompt: str) -> list[dict[str, str]]:
        return [
            {"role": "system", "content": ORACLE_SYSTEM_PROMPT},
            {"role": "user", "content": prompt},
        ]

    def _generate_json(self, prompt: str) -> Any:
        """Decoded JSON from the model, or None on any failure."""
        try:
            content = self.client.chat(messages=self._messages(prompt), json_mode=True)
        except OpenRouterError as e:
            logger.warning("Oracle JSON call failed: %s", e)
            return None
        text = strip_code_fence(content)
        try:
            return json.loads(text)
        except (ValueError, RecursionError) as e:
            logger.warning("Oracle returned unparseable JSON (%s). Raw text: %r", e, content[:500])
            return None

    def _generate_text(self, prompt: str) -> Optional[str]:
        try:
            content = self.client.chat(messages=self._messages(prompt))
        except OpenRouterError as e:
            logger.warning("Oracle text call failed: %s", e)
            return None
        content = content.strip()
        return content or None

    # ---------- Oracle operations ----------
    def fetch_challenge(self) -> Challenge:
        payload = self._generate_json(CHALLENGE_PROMPT)
        challenge = parse_challenge(payload)
        if challenge is None:
            logger.warning("Challenge fallback triggered by unexpected payload: %r", payload)
            return self.fallback.fetch_challenge()
        logger.info("Loaded challenge with regions %s", ", ".join(challenge.regions))
        return challenge

    def evaluate_guess(self, challenge: Challenge, guess_text: str) -> GuessEvaluation:
        payload = self._generate_json(evaluation_prompt(challenge.regions, challenge.country, guess_text))
        evaluation = parse_evaluation(payload)
        if evaluation is None:
            logger.warning("Evaluation fallback triggered by unexpected payload: %r", payload)
            return self.fallback.evaluate_guess(challenge, guess_text)
        if not evaluation.is_correct and _mentions(evaluation.feedback, challenge.country):
            logger.warning("Redacting wrong-guess feedback that names the secret country")
            evaluation = GuessEvaluation(
                is_correct=False, feedback=NEUTRAL_WRONG_FEEDBACK, is_close=evaluation.is_close
            )
        return evaluation

    def fetch_win_message(self, guess_count: int, secret_country: str) -> str:
        message = self._generate_text(win_message_prompt(guess_count, secret_country))
        if message is None:
            logger.warning("Win message fallback triggered")
            return self.fallback.fetch_win_message(guess_count, secret_country)
        return message

def build_oracle(settings: Optional[Settings] = None) -> Oracle:
    """Pick the oracle once at startup based on credential availability."""
    settings = settings or Settings.from_env()
    if not is_backend_available(settings):
        logger.warning("OPENROUTER_API_KEY not set. AI features disabled, using fallback oracle.")
        return FallbackOracle()
    try:
        client = OpenRouterClient(settings)
    except OpenRouterError as e:
        logger.error("Failed to initialise OpenRouter client: %s", e)
        return FallbackOracle()
    return LiveOracle(client)
