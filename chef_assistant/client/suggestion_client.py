"""Suggestion client: ingredient collection, prompt submission and reply parsing.

Holds the per-session state behind the recipe UI:
- items: normalized ingredient names (trimmed, lowercase, unique)
- pending_input: text typed but not yet added
- mode: MatchingMode used to phrase the prompt
- results: SuggestionRecords of the latest search
- loading: True while the latest search is in flight

State machine: IDLE -> SEARCHING -> {DISPLAYING | DISPLAYING_ERROR},
re-entering SEARCHING from either display state.

Each search takes a generation token. A reply that arrives after a newer
search started is discarded, so overlapping searches cannot overwrite the
newer results or clear its loading flag.
"""

import json
import re
from enum import Enum
from typing import List, Optional

from pydantic import ValidationError

from chef_assistant.client.completers import Completer
from chef_assistant.models.models import MatchingMode, SuggestionEnvelope, SuggestionRecord
from chef_assistant.prompts.prompts import MODE_INSTRUCTIONS, build_suggestion_prompt
from chef_assistant.utils.logger import logger


class ClientState(str, Enum):
    IDLE = "idle"
    SEARCHING = "searching"
    DISPLAYING = "displaying"
    DISPLAYING_ERROR = "displaying_error"


class SuggestionParseError(ValueError):
    """Model reply is not JSON or does not match the suggestion envelope."""


_ERROR_TEXTS = {
    "en": {
        "processing": (
            "Processing error",
            "Could not process the AI response. Please try again.",
        ),
        "connection": (
            "Connection error",
            "Could not connect to the recipe service. Please try again.",
        ),
    },
    "fr": {
        "processing": (
            "Erreur de traitement",
            "Impossible de traiter la réponse de l'IA. Veuillez réessayer.",
        ),
        "connection": (
            "Erreur de connexion",
            "Impossible de se connecter au service de recettes. Veuillez réessayer.",
        ),
    },
}

_CODE_FENCE = re.compile(r"^\s*```(?:json)?\s*(.*?)\s*```\s*$", re.DOTALL)


def error_record(kind: str, language: str = "en") -> SuggestionRecord:
    """Build the sentinel record displayed when a search fails.

    Args:
        kind: "processing" (bad reply) or "connection" (completer failure).
        language: Message language ("en" or "fr").
    """
    name, description = _ERROR_TEXTS[language][kind]
    return SuggestionRecord(
        name=name,
        description=description,
        ingredients=[],
        instructions=[],
        cooking_time="N/A",
        servings=0,
        difficulty="N/A",
        match_score=0,
    )


def normalize_item(text: Optional[str]) -> str:
    return (text or "").strip().lower()


def parse_suggestions(reply: str) -> List[SuggestionRecord]:
    """Parse a model reply into suggestion records.

    Tries the raw reply first, then the reply with a surrounding Markdown
    code fence removed.

    Args:
        reply: Raw reply text, expected to be {"recipes": [...]}.

    Returns:
        List of SuggestionRecord, in reply order.

    Raises:
        SuggestionParseError: If no candidate is valid JSON or the envelope is ill-shaped.
    """
    if not isinstance(reply, str):
        raise SuggestionParseError(f"Reply must be text, got {type(reply).__name__}")

    candidates = [reply]
    fenced = _CODE_FENCE.match(reply)
    if fenced:
        candidates.append(fenced.group(1))

    data = None
    for candidate in candidates:
        try:
            data = json.loads(candidate)
            break
        # ValueError covers JSONDecodeError and oversized integer literals;
        # deeply nested arrays exhaust the decoder's recursion limit
        except (ValueError, RecursionError):
            continue
    else:
        raise SuggestionParseError("Reply is not valid JSON")

    try:
        envelope = SuggestionEnvelope.model_validate(data)
    except ValidationError as e:
        raise SuggestionParseError(f"Invalid suggestion format: {e.error_count()} error(s)") from e

    return envelope.recipes


class SuggestionClient:
    """Session state and search logic behind the recipe suggestion UI."""

    def __init__(self, completer: Completer, suggestion_count: int = 3, language: str = "en") -> None:
        if language not in MODE_INSTRUCTIONS:
            raise ValueError(f"Unsupported prompt language: {language}")

        self.completer = completer
        self.suggestion_count = suggestion_count
        self.language = language

        self.items: List[str] = []
        self.pending_input: str = ""
        self.mode: MatchingMode = MatchingMode.EXACT
        self.results: List[SuggestionRecord] = []
        self.loading: bool = False

        self._state = ClientState.IDLE
        self._generation = 0

    @property
    def state(self) -> ClientState:
        return self._state

    def add_item(self, text: Optional[str] = None) -> bool:
        """Add an ingredient (pending_input when text is None).

        Returns:
            True if the item was added, False for empty or duplicate input.
        """
        item = normalize_item(self.pending_input if text is None else text)
        if not item or item in self.items:
            return False

        self.items.append(item)
        self.pending_input = ""
        return True

    def remove_item(self, text: str) -> None:
        if text in self.items:
            self.items.remove(text)

    def set_mode(self, mode: MatchingMode | str) -> None:
        self.mode = MatchingMode(mode)

    def build_prompt(self) -> str:
        return build_suggestion_prompt(self.items, self.mode, self.suggestion_count, self.language)

    async def search(self) -> None:
        """Run one search and replace the result set.

        No-op when there are no items. Completer failures and malformed replies
        are replaced by a single sentinel record; nothing is raised to the caller.
        """
        if not self.items:
            return

        self._generation += 1
        generation = self._generation

        self.loading = True
        self.results = []
        self._state = ClientState.SEARCHING

        context = {"generation": generation}
        try:
            prompt = self.build_prompt()
            logger.info(
                f"Searching recipes for {len(self.items)} ingredient(s), mode={self.mode.value}", extra=context
            )

            try:
                reply = await self.completer.complete(prompt)
            except Exception as e:
                logger.error(f"Recipe search failed: {e}", extra=context)
                records, state = [error_record("connection", self.language)], ClientState.DISPLAYING_ERROR
            else:
                try:
                    records, state = parse_suggestions(reply), ClientState.DISPLAYING
                except SuggestionParseError as e:
                    logger.error(f"Failed to parse recipe suggestions: {e}", extra=context)
                    logger.debug(f"Raw reply: {reply!r:.500}", extra=context)
                    records, state = [error_record("processing", self.language)], ClientState.DISPLAYING_ERROR

            if generation != self._generation:
                logger.debug(f"Discarding stale search result (latest is {self._generation})", extra=context)
                return

            self.results = records
            self._state = state
            logger.info(f"Search complete: {len(records)} suggestion(s)", extra=context)
        finally:
            if generation == self._generation:
                self.loading = False
