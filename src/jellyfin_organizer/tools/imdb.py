"""
IMDb title search used by the model to find canonical ids.
"""

import json
import logging
import re
from dataclasses import asdict, dataclass
from typing import Optional

import httpx
from bs4 import BeautifulSoup
from pydantic import BaseModel, ConfigDict, Field

from jellyfin_organizer.sandbox.exceptions import LookupServiceError
from jellyfin_organizer.tools.registry import ToolDefinition

logger = logging.getLogger(__name__)

DEFAULT_USER_AGENT = (
    "Mozilla/5.0 (Windows NT 10.0; Win64; x64) AppleWebKit/537.36 "
    "(KHTML, like Gecko) Chrome/124.0 Safari/537.36"
)

RESULT_SELECTOR = ".ipc-metadata-list-summary-item__tc"
IMDB_ID_PATTERN = re.compile(r"/(?:title|name)/((?:tt|nm)\d+)")


class IMDbSettings(BaseModel):
    """Settings for the IMDb search tool."""

    model_config = {"extra": "forbid"}

    base_url: str = Field(default="https://www.imdb.com", description="IMDb site URL")
    timeout: float = Field(default=15.0, gt=0, description="Request timeout in seconds")
    user_agent: str = Field(default=DEFAULT_USER_AGENT, description="User-Agent header")
    max_results: int = Field(default=10, ge=1, le=50, description="Results returned per search")


@dataclass
class TitleMatch:
    """One search hit."""

    title: str
    id: str
    description: str


def parse_search_results(html: str, max_results: Optional[int] = None) -> list[TitleMatch]:
    """
    Extract title matches from an IMDb find page.

    Each result block yields its link text as the title, the ``tt``/``nm`` id
    from the link, and the block's remaining text (year, cast) as description.
    """
    soup = BeautifulSoup(html, "html.parser")
    matches = []

    for item in soup.select(RESULT_SELECTOR):
        link = item.find("a", href=True)
        if link is None:
            continue
        found = IMDB_ID_PATTERN.search(link["href"])
        if not found:
            continue

        title = link.get_text(" ", strip=True)
        details = [
            text
            for text in item.stripped_strings
            if text != title
        ]
        matches.append(
            TitleMatch(title=title, id=found.group(1), description=" · ".join(details))
        )
        if max_results and len(matches) >= max_results:
            break

    return matches


class IMDbSearch:
    """
    Scrapes IMDb's find page.

    Usage:
        search = IMDbSearch(IMDbSettings())
        matches = await search.search("The Matrix 1999")
    """

    def __init__(
        self,
        settings: Optional[IMDbSettings] = None,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ):
        """
        Args:
            settings: Search settings (defaults if not provided)
            transport: Optional httpx transport (tests pass httpx.MockTransport)
        """
        self.settings = settings or IMDbSettings()
        self._transport = transport

    async def search(self, term: str) -> list[TitleMatch]:
        """
        Search IMDb for a title.

        Raises:
            LookupServiceError: If the request fails or IMDb answers with an error
        """
        headers = {
            "User-Agent": self.settings.user_agent,
            "Accept-Language": "en-US,en;q=0.9",
        }
        try:
            async with httpx.AsyncClient(
                base_url=self.settings.base_url,
                timeout=httpx.Timeout(self.settings.timeout),
                headers=headers,
                follow_redirects=True,
                transport=self._transport,
            ) as client:
                response = await client.get("/find/", params={"q": term, "ref_": "nv_sr_sm"})
        except httpx.HTTPError as e:
            raise LookupServiceError(f"Failed to scrape IMDb: {e}")

        if not response.is_success:
            raise LookupServiceError(f"IMDb search failed with HTTP {response.status_code}")

        matches = parse_search_results(response.text, self.settings.max_results)
        logger.debug(f"IMDb search {term!r}: {len(matches)} result(s)")
        return matches


class SearchIMDbInput(BaseModel):
    model_config = ConfigDict(extra="forbid")

    search_term: str = Field(
        min_length=1,
        description="The title to look for on IMDb, optionally with the year.",
    )


def imdb_tool_definition(search: IMDbSearch) -> ToolDefinition:
    """Build the ``search_imdb`` tool."""

    async def search_imdb(args: SearchIMDbInput) -> str:
        matches = await search.search(args.search_term)
        return json.dumps([asdict(m) for m in matches], ensure_ascii=False)

    return ToolDefinition(
        name="search_imdb",
        description=(
            "Search for a movie or show on IMDb. Returns a JSON list of results "
            "with title, IMDb id (e.g. tt0133093) and a short description."
        ),
        input_model=SearchIMDbInput,
        handler=search_imdb,
    )
