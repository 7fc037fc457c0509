from __future__ import annotations

import html
import logging
import re
from typing import Any, Dict, Optional

import httpx

from .agents import build_summary_prompt
from .config import DEFAULT_GEMINI_BASE_URL, DEFAULT_GEMINI_MODEL
from .errors import InputInvalidError, SummarizerError

logger = logging.getLogger(__name__)

_SCRIPT_BLOCKS = re.compile(r"<(script|style|noscript|svg|head)\b.*?</\1\s*>", re.IGNORECASE | re.DOTALL)
_TAGS = re.compile(r"<[^>]+>")
_BLANKS = re.compile(r"[ \t\r\f\v]+")
_BLANK_LINES = re.compile(r"\n\s*\n+")


def extract_page_text(raw: str) -> str:
    """Reduce an HTML document to readable text. Plain text passes through."""
    text = _SCRIPT_BLOCKS.sub(" ", raw)
    text = _TAGS.sub(" ", text)
    text = html.unescape(text)
    text = _BLANKS.sub(" ", text)
    text = _BLANK_LINES.sub("\n\n", text)
    return "\n".join(line.strip() for line in text.splitlines()).strip()


class SummarizerClient:
    """Gemini ``generateContent`` summaries plus a plain web-page fetcher."""

    def __init__(
        self,
        api_key: str,
        *,
        model: str = DEFAULT_GEMINI_MODEL,
        base_url: str = DEFAULT_GEMINI_BASE_URL,
        timeout: float = 60.0,
        max_input_chars: int = 20000,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ) -> None:
        self.api_key = api_key
        self.model = model
        self.base_url = base_url.rstrip("/")
        self.timeout = timeout
        self.max_input_chars = max_input_chars
        self._transport = transport
        self._http_client: Optional[httpx.AsyncClient] = None

    def _get_http_client(self) -> httpx.AsyncClient:
        if self._http_client is None or self._http_client.is_closed:
            self._http_client = httpx.AsyncClient(
                timeout=self.timeout,
                transport=self._transport,
                follow_redirects=True,
            )
        return self._http_client

    async def close(self) -> None:
        if self._http_client is not None and not self._http_client.is_closed:
            await self._http_client.aclose()
        self._http_client = None

    async def summarize(self, text: str) -> str:
        if not self.api_key:
            raise SummarizerError("Summaries are not configured (GEMINI_CREDS is unset).")
        if not text.strip():
            raise InputInvalidError("There is no text to summarize.")
        if len(text) > self.max_input_chars:
            text = text[: self.max_input_chars]

        payload: Dict[str, Any] = {"contents": [{"parts": [{"text": build_summary_prompt(text)}]}]}
        url = f"{self.base_url}/models/{self.model}:generateContent"
        client = self._get_http_client()
        try:
            response = await client.post(url, params={"key": self.api_key}, json=payload)
        except httpx.RequestError as exc:
            raise SummarizerError(f"Error sending request to Gemini API: {exc}") from exc

        if response.status_code != 200:
            raise SummarizerError(
                f"Gemini API returned non-200 status: {response.status_code} - {response.text}",
                status_code=response.status_code,
            )

        try:
            data = response.json()
        except ValueError as exc:
            raise SummarizerError(f"Error decoding Gemini API response: {exc}") from exc

        try:
            summary = data["candidates"][0]["content"]["parts"][0]["text"]
        except (KeyError, IndexError, TypeError):
            raise SummarizerError("No summary found in Gemini response") from None
        logger.info("Received summary from Gemini (%d chars).", len(summary))
        return summary.strip()

    async def fetch_page(self, url: str) -> str:
        url = url.strip()
        if not url.lower().startswith(("http://", "https://")):
            raise InputInvalidError("Please provide a valid http(s) URL.")
        client = self._get_http_client()
        try:
            response = await client.get(url)
        except httpx.RequestError as exc:
            raise SummarizerError(f"Error fetching {url}: {exc}") from exc
        if response.is_error:
            raise SummarizerError(
                f"Fetching {url} returned HTTP {response.status_code}",
                status_code=response.status_code,
            )
        text = extract_page_text(response.text)
        logger.debug("Fetched %s (%d chars of text).", url, len(text))
        return text[: self.max_input_chars]
