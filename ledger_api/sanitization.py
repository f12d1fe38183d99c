"""
Input sanitization middleware.

Protects the API against markup and script injection in user-supplied text
(descriptions, names) and against oversized payloads:

  - Strings longer than MAX_INPUT_LENGTH anywhere in a JSON body -> 413
  - Query parameter values longer than MAX_INPUT_LENGTH -> 413
  - <script> blocks, HTML tags, inline event handlers (onclick=...) and
    javascript:/vbscript:/data: schemes are stripped from every string in
    a JSON body, keys included

Only JSON bodies of POST/PUT/PATCH requests are rewritten. Bodies that aren't
valid JSON pass through untouched so that request validation reports them.

The middleware is a plain ASGI callable rather than a BaseHTTPMiddleware:
it has to replace the request body before FastAPI parses it, which means
wrapping the ASGI `receive` channel.
"""

import json
import logging
import re
from typing import Any
from urllib.parse import parse_qsl

from starlette.datastructures import Headers
from starlette.types import ASGIApp, Message, Receive, Scope, Send

from ledger_api.exceptions import error_response


logger = logging.getLogger(__name__)

_SCRIPT_BLOCK = re.compile(r"<script\b[^>]*>.*?</script\s*>", re.IGNORECASE | re.DOTALL)
_HTML_TAG = re.compile(r"<[^>]*>")
_EVENT_HANDLER = re.compile(r"\bon\w+\s*=", re.IGNORECASE)
_DANGEROUS_SCHEME = re.compile(r"\b(?:javascript|vbscript|data)\s*:", re.IGNORECASE)

_BODY_METHODS = frozenset({"POST", "PUT", "PATCH"})


def sanitize_string(value: str) -> str:
    """Strip script blocks, tags, event handlers and script URL schemes."""
    value = _SCRIPT_BLOCK.sub("", value)
    value = _HTML_TAG.sub("", value)
    value = _EVENT_HANDLER.sub("", value)
    value = _DANGEROUS_SCHEME.sub("", value)
    return value.strip()


def sanitize_data(data: Any) -> Any:
    """Recursively sanitize every string in a decoded JSON document."""
    if isinstance(data, str):
        return sanitize_string(data)
    if isinstance(data, list):
        return [sanitize_data(item) for item in data]
    if isinstance(data, dict):
        return {sanitize_string(key): sanitize_data(value) for key, value in data.items()}
    return data


def validate_input_length(data: Any, max_length: int) -> bool:
    """True if every string in `data` (keys included) is at most `max_length` long."""
    if isinstance(data, str):
        return len(data) <= max_length
    if isinstance(data, list):
        return all(validate_input_length(item, max_length) for item in data)
    if isinstance(data, dict):
        return all(
            validate_input_length(key, max_length) and validate_input_length(value, max_length)
            for key, value in data.items()
        )
    return True


class SanitizationMiddleware:
    """ASGI middleware applying the checks above to every HTTP request."""

    def __init__(self, app: ASGIApp, max_length: int = 10_000):
        self.app = app
        self.max_length = max_length

    async def __call__(self, scope: Scope, receive: Receive, send: Send) -> None:
        if scope["type"] != "http":
            await self.app(scope, receive, send)
            return

        query = scope.get("query_string", b"").decode("latin-1")
        if query:
            values = [value for _, value in parse_qsl(query, keep_blank_values=True)]
            if not validate_input_length(values, self.max_length):
                logger.warning("Rejected oversized query string", extra={"path": scope["path"]})
                response = error_response(413, "Query parameters too large")
                await response(scope, receive, send)
                return

        headers = Headers(scope=scope)
        if (
            scope["method"] not in _BODY_METHODS
            or "application/json" not in headers.get("content-type", "")
        ):
            await self.app(scope, receive, send)
            return

        body = await self._read_body(receive)

        try:
            payload = json.loads(body) if body else None
        except ValueError:
            payload = None
            sanitized_body = body
        else:
            if not validate_input_length(payload, self.max_length):
                logger.warning("Rejected oversized request body", extra={"path": scope["path"]})
                response = error_response(413, "Input too large")
                await response(scope, receive, send)
                return
            sanitized_body = json.dumps(sanitize_data(payload)).encode() if body else body

        scope = dict(scope)
        scope["headers"] = [
            (name, value) for name, value in scope["headers"] if name != b"content-length"
        ] + [(b"content-length", str(len(sanitized_body)).encode())]

        await self.app(scope, self._replay(sanitized_body, receive), send)

    @staticmethod
    async def _read_body(receive: Receive) -> bytes:
        chunks = []
        more_body = True
        while more_body:
            message = await receive()
            if message["type"] != "http.request":
                break
            chunks.append(message.get("body", b""))
            more_body = message.get("more_body", False)
        return b"".join(chunks)

    @staticmethod
    def _replay(body: bytes, receive: Receive) -> Receive:
        """A receive channel that yields `body` once, then defers to the original."""
        sent = False

        async def replay() -> Message:
            nonlocal sent
            if not sent:
                sent = True
                return {"type": "http.request", "body": body, "more_body": False}
            return await receive()

        return replay
