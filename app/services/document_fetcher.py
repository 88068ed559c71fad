"""
Import article text from a shared Google Doc or a Substack post.

Substack extraction flow:
1. Download the page (retries with exponential backoff on network errors)
2. Extract the body with trafilatura
3. If that comes back too short, read the post out of the page's
   ``window._preloads`` JSON (works for drafts shared by link)
4. Prepend the post title

Google Docs are fetched through the plain-text export URL, which only works
for documents shared with "Anyone with the link".
"""

import html
import json
import logging
import re
import time
from dataclasses import dataclass

import httpx
import trafilatura
from tenacity import (
    retry,
    retry_if_exception_type,
    stop_after_attempt,
    wait_exponential,
)

from app.constants import DocumentFetch

logger = logging.getLogger(__name__)

SUBSTACK_POST_PATH = re.compile(r"https?://[^/]+\.[^/]+/p/")
GOOGLE_DOC_ID_PATTERNS = (
    re.compile(r"/document/d/([a-zA-Z0-9_-]+)"),
    re.compile(r"/open\?id=([a-zA-Z0-9_-]+)"),
    re.compile(r"id=([a-zA-Z0-9_-]+)"),
)
GOOGLE_EXPORT_URL = "https://docs.google.com/document/d/{doc_id}/export?format=txt"

PRELOADS_PATTERN = re.compile(r"window\._preloads\s*=\s*JSON\.parse\((\"(?:[^\"\\]|\\.)*\")\)", re.S)
BLOCK_PATTERN = re.compile(r"<(p|h[1-4]|blockquote|li)\b[^>]*>(.*?)</\1>", re.S | re.I)
TAG_PATTERN = re.compile(r"<[^>]+>")


class DocumentFetchError(Exception):
    """Fetch failed; ``status_code`` is the HTTP status to report."""

    def __init__(self, message: str, status_code: int = 502):
        self.status_code = status_code
        super().__init__(message)


@dataclass
class FetchedDocument:
    content: str
    source: str  # "substack" or "google_doc"
    extractor_used: str
    duration_ms: int = 0


def is_substack_url(url: str) -> bool:
    return "substack.com" in url or bool(SUBSTACK_POST_PATH.match(url))


def parse_google_doc_id(url: str) -> str | None:
    for pattern in GOOGLE_DOC_ID_PATTERNS:
        match = pattern.search(url)
        if match:
            return match.group(1)
    return None


def _html_blocks_to_text(body_html: str) -> str:
    blocks = []
    for match in BLOCK_PATTERN.finditer(body_html):
        text = html.unescape(TAG_PATTERN.sub("", match.group(2))).strip()
        if text:
            blocks.append(text)
    return "\n\n".join(blocks)


def extract_preloaded_post(page_html: str) -> tuple[str, str]:
    """
    Read (title, body text) from Substack's embedded preload JSON.

    Returns ("", "") when the page has no usable preload.
    """
    match = PRELOADS_PATTERN.search(page_html)
    if not match:
        return "", ""
    try:
        # The argument is a JS string literal wrapping the JSON document
        preloads = json.loads(json.loads(match.group(1)))
    except (json.JSONDecodeError, TypeError) as e:
        logger.debug(f"Substack preload JSON unreadable: {e}")
        return "", ""

    post = preloads.get("post") or (preloads.get("posts") or [None])[0]
    if not isinstance(post, dict) or not post.get("body_html"):
        return "", ""
    return (post.get("title") or "").strip(), _html_blocks_to_text(post["body_html"])


class DocumentFetcher:
    """Fetch article text for the editor's import box."""

    def __init__(self, client: httpx.AsyncClient | None = None):
        self.client = client or httpx.AsyncClient(
            timeout=DocumentFetch.TIMEOUT_SECONDS,
            follow_redirects=True,
            headers={"User-Agent": "Mozilla/5.0 (compatible; EditorialAssistant/1.0)"},
        )

    @retry(
        stop=stop_after_attempt(3),
        wait=wait_exponential(multiplier=1, min=1, max=8),
        retry=retry_if_exception_type(httpx.TransportError),
        reraise=True,
    )
    async def _get_with_retry(self, url: str) -> httpx.Response:
        return await self.client.get(url)

    async def _download(self, url: str, what: str) -> str:
        try:
            response = await self._get_with_retry(url)
        except httpx.HTTPError as e:
            raise DocumentFetchError(f"Failed to fetch {what}: {e}") from e
        if response.status_code >= 400:
            hint = ""
            if what == "document":
                hint = ' Make sure the document is shared with "Anyone with the link".'
            raise DocumentFetchError(f"Failed to fetch {what}: {response.status_code}.{hint}")
        return response.text

    async def fetch(self, url: str) -> FetchedDocument:
        url = (url or "").strip()
        if not url:
            raise DocumentFetchError("URL is required", status_code=400)

        start_time = time.time()
        if is_substack_url(url):
            document = await self._fetch_substack(url)
        else:
            document = await self._fetch_google_doc(url)
        document.duration_ms = int((time.time() - start_time) * 1000)

        logger.info(
            f"Fetched {len(document.content)} chars from {document.source} via {document.extractor_used}",
            extra={"duration_ms": document.duration_ms},
        )
        return document

    async def _fetch_substack(self, url: str) -> FetchedDocument:
        page = await self._download(url, "post")

        title = ""
        content = trafilatura.extract(page, include_comments=False, include_tables=False) or ""
        extractor = "trafilatura"
        if content:
            metadata = trafilatura.extract_metadata(page)
            title = (metadata.title if metadata and metadata.title else "").strip()

        if len(content) < DocumentFetch.MIN_CONTENT_CHARS:
            title, content = extract_preloaded_post(page)
            extractor = "preloads"

        if len(content) < DocumentFetch.MIN_CONTENT_CHARS:
            raise DocumentFetchError(
                "Could not extract article content. Make sure this is a public or shared Substack post.",
                status_code=422,
            )

        if title and not content.startswith(title):
            content = f"{title}\n\n{content}"
        return FetchedDocument(content=content, source="substack", extractor_used=extractor)

    async def _fetch_google_doc(self, url: str) -> FetchedDocument:
        doc_id = parse_google_doc_id(url)
        if not doc_id:
            raise DocumentFetchError(
                "Could not parse URL. Supported: Google Docs (shared publicly) or Substack articles.",
                status_code=400,
            )
        text = await self._download(GOOGLE_EXPORT_URL.format(doc_id=doc_id), "document")
        return FetchedDocument(content=text.lstrip("\ufeff"), source="google_doc", extractor_used="export")

    async def close(self) -> None:
        await self.client.aclose()
