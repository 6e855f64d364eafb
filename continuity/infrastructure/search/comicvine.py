"""ComicVine issue search (external metadata search provider)."""

import logging
import re
from datetime import datetime
from typing import Any, Optional

import httpx

from continuity.domain.entities import ComicRecord
from continuity.domain.exceptions import SearchProviderError
from continuity.domain.repositories import IComicSearchService

logger = logging.getLogger(__name__)

WRITER_ROLES = ("writer", "script")
ARTIST_ROLES = ("artist", "penciler", "penciller", "illustrator")

DESCRIPTION_MAX_CHARS = 200

_HTML_TAG_RE = re.compile(r"<[^>]*>")


def _as_dict(value: Any) -> dict[str, Any]:
    return value if isinstance(value, dict) else {}


def _text(value: Any) -> str:
    return value if isinstance(value, str) else ""


def _credit_for(credits: list[Any], roles: tuple[str, ...]) -> str:
    # Roles arrive as free text, sometimes comma-joined ("writer, cover").
    for credit in credits:
        credit = _as_dict(credit)
        role = _text(credit.get("role")).lower()
        name = _text(credit.get("name"))
        if any(keyword in role for keyword in roles) and name:
            return name
    return "Unknown"


def _cover_year(cover_date: Any) -> int:
    if isinstance(cover_date, str) and cover_date:
        try:
            return int(cover_date.split("-")[0])
        except ValueError:
            pass
    return datetime.utcnow().year


def issue_to_record(issue: dict[str, Any]) -> ComicRecord:
    """Map one ComicVine ``issue`` resource to a :class:`ComicRecord`.

    Nested fields of the wrong type are treated as missing.
    """
    volume = _as_dict(issue.get("volume"))
    volume_name = _text(volume.get("name"))
    issue_number = issue.get("issue_number")
    credits = issue.get("person_credits")
    if not isinstance(credits, list):
        credits = []

    title = f"{volume_name} #{issue_number}" if issue_number else volume_name

    raw_description = _text(issue.get("description"))
    if raw_description:
        description = _HTML_TAG_RE.sub("", raw_description)[:DESCRIPTION_MAX_CHARS] + "..."
    else:
        description = f"{volume_name} issue {issue_number or ''}"

    publisher = _text(_as_dict(volume.get("publisher")).get("name"))
    image = _as_dict(issue.get("image"))

    return ComicRecord(
        id=f"cv-{issue.get('id')}",
        title=title,
        writer=_credit_for(credits, WRITER_ROLES),
        artist=_credit_for(credits, ARTIST_ROLES),
        publisher=publisher,
        year=_cover_year(issue.get("cover_date")),
        description=description,
        cover_url=_text(image.get("medium_url")),
        read_states=set(),
    )


class ComicVineSearchService(IComicSearchService):
    """Issue search against the ComicVine ``/search`` endpoint.

    Constructor args:
        api_key:   ComicVine API key.
        base_url:  API root (default ``https://comicvine.gamespot.com/api``).
        limit:     maximum results per query (default 12).
        timeout:   per-request timeout in seconds.
        transport: optional httpx transport (tests).
    """

    def __init__(
        self,
        api_key: str,
        base_url: str = "https://comicvine.gamespot.com/api",
        limit: int = 12,
        timeout: float = 15.0,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ):
        self.api_key = api_key
        self.base_url = base_url.rstrip("/")
        self.limit = limit
        self.timeout = timeout
        self._transport = transport

    async def search(self, query: str) -> list[ComicRecord]:
        params = {
            "api_key": self.api_key,
            "format": "json",
            "resources": "issue",
            "query": query,
            "limit": self.limit,
        }
        # ComicVine rejects requests without a User-Agent.
        headers = {"User-Agent": "continuity/1.0"}
        try:
            async with httpx.AsyncClient(
                timeout=self.timeout, transport=self._transport
            ) as client:
                resp = await client.get(
                    f"{self.base_url}/search/", params=params, headers=headers
                )
                resp.raise_for_status()
                data = resp.json()
        except httpx.HTTPError as exc:
            raise SearchProviderError(f"ComicVine request failed: {exc}") from exc
        except ValueError as exc:
            raise SearchProviderError(f"ComicVine returned invalid JSON: {exc}") from exc

        if not isinstance(data, dict) or data.get("error") != "OK":
            error = data.get("error") if isinstance(data, dict) else "unexpected payload"
            raise SearchProviderError(f"ComicVine error: {error}")

        issues = data.get("results") or []
        if not isinstance(issues, list):
            raise SearchProviderError("ComicVine error: malformed results")
        results = [issue_to_record(issue) for issue in issues if isinstance(issue, dict)]
        if len(results) < len(issues):
            logger.warning("Skipped %d malformed ComicVine results", len(issues) - len(results))
        logger.info("ComicVine returned %d results for %r", len(results), query)
        return results
