"""Credential-guarded forwarder for the Anthropic Messages API.

Relays an opaque JSON body from the browser to the upstream completion API,
attaching the secret API key and protocol version headers server-side so the
key never reaches the client. The relay is byte-transparent in both directions:
the inbound body is forwarded as received and a successful upstream body is
returned unchanged.

Status codes:
- 200: OPTIONS preflight (empty body) or relayed upstream body
- 405: any method other than OPTIONS/POST
- 500: missing API key, upstream non-2xx, network or parse failure

No retries, no timeout beyond the aiohttp default, no state kept between requests.
"""

import json
import uuid
from typing import Optional

import aiohttp
from aiohttp import web

from chef_assistant.models.models import ErrorResponse, ForwarderSettings
from chef_assistant.utils.logger import logger


class ForwarderError(Exception):
    """Base error for forwarder failures, converted to a JSON error body."""

    status = 500


class MissingCredentialError(ForwarderError):
    """API key is not configured; raised before any upstream call."""

    def __init__(self) -> None:
        super().__init__("API key not configured")


class UpstreamError(ForwarderError):
    """Upstream API answered with a non-success status."""

    def __init__(self, upstream_status: int) -> None:
        super().__init__(f"API Error: {upstream_status}")
        self.upstream_status = upstream_status


def new_request_id() -> str:
    """Short id correlating the log records of one forwarded request."""
    return uuid.uuid4().hex[:8]


class CredentialGuardedForwarder:
    """Single-endpoint relay that injects the upstream credential.

    Args:
        settings: Credential, upstream URL, API version and CORS policy.
        session: Optional shared aiohttp session. When None, a session is
            opened per request.
    """

    ALLOWED_METHODS = ("POST", "OPTIONS")

    def __init__(self, settings: ForwarderSettings, session: Optional[aiohttp.ClientSession] = None) -> None:
        self.settings = settings
        self.session = session

    def cors_headers(self) -> dict[str, str]:
        """CORS headers attached to every response, empty when CORS is disabled."""
        if not self.settings.cors_enabled:
            return {}
        return {
            "Access-Control-Allow-Origin": self.settings.cors_allow_origin,
            "Access-Control-Allow-Methods": ", ".join(self.ALLOWED_METHODS),
            "Access-Control-Allow-Headers": "Content-Type",
        }

    def upstream_headers(self) -> dict[str, str]:
        return {
            "Content-Type": "application/json",
            "x-api-key": self.settings.api_key,
            "anthropic-version": self.settings.api_version,
        }

    def _error_response(self, status: int, message: str) -> web.Response:
        return web.json_response(
            ErrorResponse(error=message).model_dump(),
            status=status,
            headers=self.cors_headers(),
        )

    async def handle(self, request: web.Request) -> web.Response:
        """Handle one inbound request (aiohttp handler).

        Args:
            request: Inbound aiohttp request.

        Returns:
            web.Response: Relayed upstream body or a normalized {"error": ...} body.
        """
        if request.method == "OPTIONS":
            return web.Response(status=200, headers=self.cors_headers())

        if request.method != "POST":
            return self._error_response(405, "Method not allowed")

        request_id = new_request_id()
        try:
            body = await request.read()
            logger.info(f"Forwarding {len(body)} byte(s) upstream", extra={"request_id": request_id})
            upstream_text = await self.forward(body, request_id=request_id)
        except ForwarderError as e:
            # forward() already logged the specific cause
            return self._error_response(e.status, str(e))
        except Exception as e:
            logger.error(f"Error in forwarder handler: {e}", exc_info=True, extra={"request_id": request_id})
            return self._error_response(500, str(e) or e.__class__.__name__)

        logger.info("Upstream reply relayed", extra={"request_id": request_id})
        return web.Response(
            status=200,
            text=upstream_text,
            content_type="application/json",
            headers=self.cors_headers(),
        )

    async def forward(self, body: bytes, request_id: Optional[str] = None) -> str:
        """Issue the single upstream call and return the upstream JSON text.

        Args:
            body: Inbound request body, forwarded unchanged.
            request_id: Tag attached to every log record of this call. A new
                one is generated when None.

        Returns:
            str: Upstream response body (validated as JSON, returned verbatim).

        Raises:
            MissingCredentialError: If no API key is configured (no network call made).
            UpstreamError: If the upstream answers with a non-2xx status.
            aiohttp.ClientError: On network failure.
            json.JSONDecodeError: If a 2xx body is not valid JSON.
        """
        request_id = request_id or new_request_id()

        if not self.settings.api_key:
            logger.error("ANTHROPIC_API_KEY is not set", extra={"request_id": request_id})
            raise MissingCredentialError()

        if self.session is not None:
            return await self._post(self.session, body, request_id)

        async with aiohttp.ClientSession() as session:
            return await self._post(session, body, request_id)

    async def _post(self, session: aiohttp.ClientSession, body: bytes, request_id: str) -> str:
        async with session.post(
            self.settings.upstream_url,
            data=body,
            headers=self.upstream_headers(),
        ) as response:
            text = await response.text()
            if not 200 <= response.status < 300:
                logger.error(
                    f"API Error: {response.status} - {text}",
                    extra={"request_id": request_id, "upstream_status": response.status},
                )
                raise UpstreamError(response.status)

        # Success bodies must be JSON
        json.loads(text)
        return text


FORWARDER_KEY = web.AppKey("forwarder", CredentialGuardedForwarder)


def create_app(
    settings: ForwarderSettings,
    path: str = "/api/claude",
    session: Optional[aiohttp.ClientSession] = None,
) -> web.Application:
    """Create the aiohttp application serving the forwarder on a single route.

    Every method is routed to the forwarder so it can answer 405 itself with
    the normalized error body.

    Args:
        settings: Forwarder settings (credential, upstream, CORS policy).
        path: Route path. Default: "/api/claude".
        session: Optional shared aiohttp session for upstream calls.

    Returns:
        web.Application: Configured application.
    """
    forwarder = CredentialGuardedForwarder(settings, session=session)
    app = web.Application()
    app[FORWARDER_KEY] = forwarder
    app.router.add_route("*", path, forwarder.handle)

    logger.info(
        f"Forwarder mounted at {path} -> {settings.upstream_url} "
        f"(credential {'configured' if settings.api_key else 'MISSING'}, cors={settings.cors_enabled})"
    )
    return app
