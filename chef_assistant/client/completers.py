"""Completion backends consumed by the suggestion client.

A completer accepts prompt text and returns the model's raw reply text.
Two backends are provided:

1. ForwarderCompleter (COMPLETION_BACKEND="forwarder", default):
   - Posts an Anthropic Messages payload to the credential-guarded forwarder
   - Never sees the Anthropic API key
2. GeminiCompleter (COMPLETION_BACKEND="gemini"):
   - Calls Gemini directly with GEMINI_API_KEY (local experiments)

Neither backend retries; failures surface as exceptions and the suggestion
client turns them into a sentinel record.
"""

import asyncio
from typing import Optional, Protocol

import aiohttp
from google import genai

from chef_assistant.utils.logger import logger


class CompletionError(Exception):
    """Completion backend failed or returned no usable text."""


class Completer(Protocol):
    """Capability: accept prompt text, return reply text."""

    async def complete(self, prompt: str) -> str: ...


def extract_message_text(payload: dict) -> str:
    """Concatenate the text blocks of an Anthropic Messages response.

    Args:
        payload: Decoded Messages API response.

    Returns:
        str: Joined text of all "text" content blocks.

    Raises:
        CompletionError: If the payload carries no text block.
    """
    content = payload.get("content") if isinstance(payload, dict) else None
    if not isinstance(content, list):
        raise CompletionError("Completion response has no content")

    texts = [
        block.get("text", "")
        for block in content
        if isinstance(block, dict) and block.get("type") == "text"
    ]
    if not texts:
        raise CompletionError("Completion response has no text block")
    return "".join(texts)


class ForwarderCompleter:
    """Completer that routes prompts through the credential-guarded forwarder."""

    def __init__(
        self,
        url: str,
        model: str,
        max_tokens: int = 1000,
        session: Optional[aiohttp.ClientSession] = None,
    ) -> None:
        self.url = url
        self.model = model
        self.max_tokens = max_tokens
        self.session = session

    def build_payload(self, prompt: str) -> dict:
        return {
            "model": self.model,
            "max_tokens": self.max_tokens,
            "messages": [{"role": "user", "content": prompt}],
        }

    async def complete(self, prompt: str) -> str:
        """Send the prompt and return the reply text.

        Raises:
            CompletionError: If the forwarder answers non-200 or the reply has no text.
            aiohttp.ClientError: On network failure.
        """
        if self.session is not None:
            return await self._post(self.session, prompt)

        async with aiohttp.ClientSession() as session:
            return await self._post(session, prompt)

    async def _post(self, session: aiohttp.ClientSession, prompt: str) -> str:
        logger.debug(f"Posting prompt ({len(prompt)} chars) to forwarder {self.url}")
        async with session.post(self.url, json=self.build_payload(prompt)) as response:
            if response.status != 200:
                detail = await response.text()
                raise CompletionError(f"Forwarder returned {response.status}: {detail}")
            payload = await response.json(content_type=None)

        return extract_message_text(payload)


class GeminiCompleter:
    """Completer that calls Gemini directly through google-genai."""

    def __init__(self, api_key: str, model: str = "gemini-2.5-flash-lite") -> None:
        """Initialize the Gemini completer.

        Raises:
            ValueError: If api_key is None or empty string.
        """
        if not api_key:
            raise ValueError("GEMINI_API_KEY is required for the gemini completion backend")
        self.model = model
        self.client = genai.Client(api_key=api_key)

    async def complete(self, prompt: str) -> str:
        # Sync SDK call kept off the event loop
        response = await asyncio.to_thread(
            self.client.models.generate_content,
            model=self.model,
            contents=prompt,
        )
        if not response.text:
            raise CompletionError("Gemini returned an empty response")
        return response.text


def create_completer(config, session: Optional[aiohttp.ClientSession] = None) -> Completer:
    """Build the completer selected by COMPLETION_BACKEND.

    Args:
        config: Application Config.
        session: Optional shared aiohttp session (forwarder backend only).

    Returns:
        Completer: ForwarderCompleter or GeminiCompleter.
    """
    if config.COMPLETION_BACKEND == "gemini":
        logger.info(f"Using Gemini completion backend ({config.GEMINI_MODEL})")
        return GeminiCompleter(api_key=config.GEMINI_API_KEY, model=config.GEMINI_MODEL)

    logger.info(f"Using forwarder completion backend ({config.FORWARDER_URL})")
    return ForwarderCompleter(
        url=config.FORWARDER_URL,
        model=config.ANTHROPIC_MODEL,
        max_tokens=config.MAX_TOKENS,
        session=session,
    )
