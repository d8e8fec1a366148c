from __future__ import annotations
from typing import Sequence

ORACLE_SYSTEM_PROMPT = """You are the host of a geography guessing game.
The player sees three real-world states or regions of a single country and must name the country.
When asked for JSON, reply with one JSON object only: no prose, no markdown, no code fences.
Never reveal the secret country unless the player has guessed it."""

CHALLENGE_PROMPT = """Generate a set of three distinct, real-world states or regions from a single country.
Also provide the name of that country. The regions should be recognizable but may offer a moderate challenge.
Provide a short, engaging question (max 20 words) asking the player to guess the country.
Return a JSON object with keys: "regions" (an array of exactly 3 region/state name strings), "country" (a string: the name of the country) and "prompt" (a string for the player).
Example 1: {"regions": ["California", "Texas", "New York"], "country": "United States of America", "prompt": "To which country do these prominent states belong?"}
Example 2: {"regions": ["Kyoto Prefecture", "Hokkaido", "Okinawa Prefecture"], "country": "Japan", "prompt": "These diverse prefectures belong to which island nation?"}
Example 3: {"regions": ["Bavaria", "North Rhine-Westphalia", "Baden-Württemberg"], "country": "Germany", "prompt": "Which European country are these 'Bundesländer' part of?"}"""

def evaluation_prompt(regions: Sequence[str], secret_country: str, guess: str) -> str:
    return f"""You are the judge.
The three regions/states shown to the player are: {", ".join(regions)}.
The secret country they belong to is: "{secret_country}".
The player guessed: "{guess}".

Decide whether the guess names the secret country. Be reasonably lenient with naming variations,
aliases and abbreviations (e.g. "USA" for "United States of America", "UK" for "United Kingdom").
Respond ONLY with a JSON object:
{{"isCorrect": boolean, "feedback": string, "isClose": boolean}}
- "feedback": a short message for the player (max 20 words). Congratulate when correct, encourage when wrong.
- "isClose": true only if the guess is wrong but is a neighbouring country or one often confused with the secret one.
If "isClose" is true, the feedback should acknowledge it (e.g. "Getting geographically close, but not there yet!").
Do not mention the secret country in the feedback unless "isCorrect" is true.
Example for wrong: {{"isCorrect": false, "feedback": "Not the one! Think about their continent.", "isClose": false}}
Example for close: {{"isCorrect": false, "feedback": "Very close neighbour, but not it!", "isClose": true}}
Example for correct: {{"isCorrect": true, "feedback": "Absolutely right! Well done!", "isClose": false}}"""

def win_message_prompt(guess_count: int, secret_country: str) -> str:
    attempts = "attempt" if guess_count == 1 else "attempts"
    goes = "go" if guess_count == 1 else "goes"
    return f"""The player just correctly guessed the country in {guess_count} {attempts}.
The country was: "{secret_country}".
Reply with a short, enthusiastic, congratulatory message (max 25 words), plain text only.
Example: "Brilliant! You pinpointed it in {guess_count} {goes}!"
Example: "Yes! That's the nation! Fantastic geographical skills!\""""
