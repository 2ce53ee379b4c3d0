"""Unit tests for the suggestion client.

Tests cover:
- Ingredient normalization, de-duplication and removal
- Matching mode selection and prompt content
- Successful reply parsing into immutable records
- Sentinel records for malformed replies and completer failures
- Loading flag and state machine transitions
- Stale replies from overlapping searches are discarded
"""

import asyncio
import json
import logging
from unittest.mock import AsyncMock

import pytest
from pydantic import ValidationError

from chef_assistant.client.suggestion_client import (
    ClientState,
    SuggestionClient,
    SuggestionParseError,
    error_record,
    parse_suggestions,
)
from chef_assistant.models.models import MatchingMode, SuggestionRecord


RECORD = {
    "name": "Tomato Basil Pasta",
    "description": "Quick weeknight pasta",
    "ingredients": ["200g pasta", "3 tomatoes", "basil"],
    "instructions": ["Boil pasta", "Make sauce", "Combine"],
    "cookingTime": "20 minutes",
    "servings": 4,
    "difficulty": "Easy",
    "matchScore": 95,
}


def reply_with(*records: dict) -> str:
    return json.dumps({"recipes": list(records)})


class GatedCompleter:
    """Completer whose replies are released manually, in any order."""

    def __init__(self) -> None:
        self.gates: list[asyncio.Future] = []

    async def complete(self, prompt: str) -> str:
        gate = asyncio.get_running_loop().create_future()
        self.gates.append(gate)
        return await gate


@pytest.fixture
def completer() -> AsyncMock:
    mock = AsyncMock()
    mock.complete.return_value = reply_with(RECORD)
    return mock


@pytest.fixture
def client(completer) -> SuggestionClient:
    return SuggestionClient(completer)


class TestItems:
    """Tests for add_item / remove_item."""

    @pytest.mark.parametrize("variant", ["Tomato", "tomato", "  TOMATO  ", "\ttomato\n"])
    def test_add_same_item_twice_keeps_one_entry(self, client, variant) -> None:
        """Casing and whitespace variants collapse to one normalized entry."""
        assert client.add_item("tomato") is True
        assert client.add_item(variant) is False
        assert client.items == ["tomato"]

    def test_add_item_normalizes(self, client) -> None:
        """Input is trimmed and lowercased."""
        client.add_item("  Bell Pepper ")
        assert client.items == ["bell pepper"]

    @pytest.mark.parametrize("blank", ["", "   ", None])
    def test_add_blank_is_noop(self, client, blank) -> None:
        """Empty input after trimming is ignored."""
        assert client.add_item(blank) is False
        assert client.items == []

    def test_add_uses_and_clears_pending_input(self, client) -> None:
        """Without an argument the pending input is added and then cleared."""
        client.pending_input = "Rice"
        assert client.add_item() is True
        assert client.items == ["rice"]
        assert client.pending_input == ""

    def test_duplicate_keeps_pending_input(self, client) -> None:
        """Rejected input stays in the pending field."""
        client.add_item("rice")
        client.pending_input = "RICE"
        client.add_item()
        assert client.pending_input == "RICE"

    def test_items_keep_insertion_order(self, client) -> None:
        for item in ["egg", "flour", "milk"]:
            client.add_item(item)
        assert client.items == ["egg", "flour", "milk"]

    def test_remove_item(self, client) -> None:
        client.add_item("egg")
        client.add_item("milk")
        client.remove_item("egg")
        assert client.items == ["milk"]

    def test_remove_missing_item_is_noop(self, client) -> None:
        """Removing an absent item leaves the set unchanged."""
        client.add_item("egg")
        client.remove_item("milk")
        assert client.items == ["egg"]


class TestMode:
    """Tests for matching mode selection."""

    def test_default_mode_is_exact(self, client) -> None:
        assert client.mode is MatchingMode.EXACT

    @pytest.mark.parametrize("mode", ["exact", "few", "flexible", MatchingMode.FEW])
    def test_set_mode(self, client, mode) -> None:
        client.set_mode(mode)
        assert client.mode == MatchingMode(mode)

    def test_set_unknown_mode_raises(self, client) -> None:
        with pytest.raises(ValueError):
            client.set_mode("anything")

    def test_unsupported_language_rejected(self, completer) -> None:
        with pytest.raises(ValueError):
            SuggestionClient(completer, language="de")


class TestSearch:
    """Tests for search()."""

    @pytest.mark.asyncio
    async def test_search_with_no_items_is_noop(self, client, completer) -> None:
        """Empty item set: no loading, no completer call."""
        await client.search()

        completer.complete.assert_not_called()
        assert client.loading is False
        assert client.state is ClientState.IDLE
        assert client.results == []

    @pytest.mark.asyncio
    async def test_prompt_embeds_items_and_mode(self, client, completer) -> None:
        """The single prompt lists the items comma-joined with the mode fragment."""
        client.add_item("chicken")
        client.add_item("rice")
        client.set_mode("few")

        await client.search()

        completer.complete.assert_awaited_once()
        prompt = completer.complete.call_args.args[0]
        assert "chicken, rice" in prompt
        assert "plus 1-2 additional ingredients at most" in prompt

    @pytest.mark.asyncio
    async def test_well_formed_reply_yields_records(self, client) -> None:
        """One well-formed record is preserved verbatim."""
        client.add_item("tomato")

        await client.search()

        assert len(client.results) == 1
        record = client.results[0]
        assert record.model_dump(by_alias=True) == RECORD
        assert client.loading is False
        assert client.state is ClientState.DISPLAYING

    @pytest.mark.asyncio
    async def test_records_are_immutable(self, client) -> None:
        client.add_item("tomato")
        await client.search()

        with pytest.raises(ValidationError):
            client.results[0].name = "Changed"

    @pytest.mark.asyncio
    async def test_not_json_yields_processing_sentinel(self, client, completer) -> None:
        """Malformed reply is replaced by a single sentinel record."""
        completer.complete.return_value = "not json"
        client.add_item("tomato")

        await client.search()

        assert len(client.results) == 1
        sentinel = client.results[0]
        assert sentinel.name == "Processing error"
        assert sentinel.match_score == 0
        assert sentinel.ingredients == []
        assert sentinel.instructions == []
        assert client.loading is False
        assert client.state is ClientState.DISPLAYING_ERROR

    @pytest.mark.asyncio
    @pytest.mark.parametrize(
        "reply",
        [
            '{"recipes": "not a list"}',
            '{"suggestions": []}',
            "[]",
            '{"recipes": [{"description": "no name"}]}',
            '{"recipes": [{"name": "X", "description": "Y", "matchScore": 150}]}',
            "[" * 100000,
            '{"recipes": [{"name": "X", "description": "Y", "matchScore": ' + "9" * 5000 + "}]}",
        ],
        ids=["recipes-not-list", "wrong-key", "bare-list", "missing-name", "score-out-of-range",
             "deeply-nested", "huge-integer"],
    )
    async def test_wrong_shape_yields_processing_sentinel(self, client, completer, reply) -> None:
        """Any undecodable or ill-shaped reply ends in the processing sentinel, never an exception."""
        completer.complete.return_value = reply
        client.add_item("tomato")

        await client.search()

        assert client.results == [error_record("processing")]
        assert client.state is ClientState.DISPLAYING_ERROR
        assert client.loading is False

    @pytest.mark.asyncio
    async def test_search_logs_tagged_with_generation(self, client, caplog) -> None:
        """Each search tags its log records with its own generation number."""
        client.add_item("tomato")

        with caplog.at_level(logging.INFO, logger="chef_assistant"):
            await client.search()
            await client.search()

        generations = [r.generation for r in caplog.records if hasattr(r, "generation")]
        assert generations == [1, 1, 2, 2]

    @pytest.mark.asyncio
    async def test_completer_failure_yields_connection_sentinel(self, client, completer) -> None:
        """Transport errors never propagate; a connection sentinel is shown."""
        completer.complete.side_effect = ConnectionError("boom")
        client.add_item("tomato")

        await client.search()

        assert client.results == [error_record("connection")]
        assert client.loading is False
        assert client.state is ClientState.DISPLAYING_ERROR

    @pytest.mark.asyncio
    async def test_french_sentinels(self, completer) -> None:
        completer.complete.return_value = "pas du json"
        client = SuggestionClient(completer, language="fr")
        client.add_item("tomate")

        await client.search()

        assert client.results[0].name == "Erreur de traitement"

    @pytest.mark.asyncio
    async def test_new_search_replaces_results(self, client, completer) -> None:
        """Each search replaces the previous result set entirely."""
        client.add_item("tomato")
        await client.search()

        second = dict(RECORD, name="Tomato Soup")
        third = dict(RECORD, name="Bruschetta")
        completer.complete.return_value = reply_with(second, third)
        await client.search()

        assert [r.name for r in client.results] == ["Tomato Soup", "Bruschetta"]

    @pytest.mark.asyncio
    async def test_loading_true_while_in_flight(self) -> None:
        """Loading is set and results cleared while the completer is pending."""
        completer = GatedCompleter()
        client = SuggestionClient(completer)
        client.add_item("egg")

        task = asyncio.create_task(client.search())
        await asyncio.sleep(0)

        assert client.loading is True
        assert client.state is ClientState.SEARCHING
        assert client.results == []

        completer.gates[0].set_result(reply_with(RECORD))
        await task
        assert client.loading is False


class TestOverlappingSearches:
    """Tests for generation tokens on concurrent searches."""

    @pytest.mark.asyncio
    async def test_stale_reply_discarded_after_newer_one(self) -> None:
        """An older reply resolving last does not overwrite newer results."""
        completer = GatedCompleter()
        client = SuggestionClient(completer)
        client.add_item("egg")

        first = asyncio.create_task(client.search())
        await asyncio.sleep(0)
        second = asyncio.create_task(client.search())
        await asyncio.sleep(0)
        assert len(completer.gates) == 2

        completer.gates[1].set_result(reply_with(dict(RECORD, name="Newer")))
        await second
        completer.gates[0].set_result(reply_with(dict(RECORD, name="Older")))
        await first

        assert [r.name for r in client.results] == ["Newer"]
        assert client.loading is False
        assert client.state is ClientState.DISPLAYING

    @pytest.mark.asyncio
    async def test_stale_reply_does_not_clear_loading(self) -> None:
        """An older reply resolving first leaves the newer search loading."""
        completer = GatedCompleter()
        client = SuggestionClient(completer)
        client.add_item("egg")

        first = asyncio.create_task(client.search())
        await asyncio.sleep(0)
        second = asyncio.create_task(client.search())
        await asyncio.sleep(0)

        completer.gates[0].set_result(reply_with(dict(RECORD, name="Older")))
        await first

        assert client.loading is True
        assert client.results == []

        completer.gates[1].set_exception(ConnectionError("down"))
        await second

        assert client.loading is False
        assert client.results == [error_record("connection")]


class TestParseSuggestions:
    """Tests for parse_suggestions()."""

    def test_parses_records_in_order(self) -> None:
        records = parse_suggestions(reply_with(dict(RECORD, name="A"), dict(RECORD, name="B")))
        assert [r.name for r in records] == ["A", "B"]
        assert all(isinstance(r, SuggestionRecord) for r in records)

    def test_empty_recipe_list_is_valid(self) -> None:
        assert parse_suggestions('{"recipes": []}') == []

    def test_code_fenced_reply_accepted(self) -> None:
        """A reply wrapped in a ```json fence still parses."""
        reply = "```json\n" + reply_with(RECORD) + "\n```"
        assert parse_suggestions(reply)[0].name == RECORD["name"]

    def test_surrounding_prose_rejected(self) -> None:
        with pytest.raises(SuggestionParseError):
            parse_suggestions("Here you go: " + reply_with(RECORD))

    def test_non_text_reply_rejected(self) -> None:
        with pytest.raises(SuggestionParseError):
            parse_suggestions(None)

    def test_decoder_limits_raise_parse_error(self) -> None:
        """Nesting and integer-size limits of the JSON decoder surface as SuggestionParseError."""
        with pytest.raises(SuggestionParseError):
            parse_suggestions("[" * 100000)
        with pytest.raises(SuggestionParseError):
            parse_suggestions('{"recipes": [{"name": "X", "description": "Y", "servings": ' + "1" * 5000 + "}]}")

    def test_optional_fields_default(self) -> None:
        """Records with only name and description are accepted."""
        record = parse_suggestions('{"recipes": [{"name": "Toast", "description": "Bread"}]}')[0]
        assert record.ingredients == []
        assert record.instructions == []
        assert record.cooking_time is None
        assert record.servings is None
        assert record.difficulty is None
        assert record.match_score is None
