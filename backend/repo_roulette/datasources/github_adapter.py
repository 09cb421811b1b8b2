from typing import Any, Dict, Optional

import httpx
from loguru import logger
from pydantic import ValidationError

from .base import DataSource
from ..config import Settings, get_settings
from ..schemas import RepositorySummary, SearchQuery, SearchResultPage
from ..services.cancellation import CancellationToken
from ..services.errors import from_transport, invalid_body, normalize
from ..services.sampler import page_window, uniform_int

SEARCH_PATH = "/search/repositories"


class GitHubAdapter(DataSource):
    def __init__(
        self,
        settings: Optional[Settings] = None,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ):
        self.settings = settings or get_settings()
        headers = {
            "Accept": "application/vnd.github+json",
            "User-Agent": "Repo-Roulette",
        }
        if self.settings.github_token:
            headers["Authorization"] = f"Bearer {self.settings.github_token}"
        self.headers = headers
        client_kwargs: Dict[str, Any] = {
            "base_url": str(self.settings.github_base_url),
            "headers": headers,
        }
        if self.settings.request_timeout is not None:
            client_kwargs["timeout"] = self.settings.request_timeout
        if transport is not None:
            client_kwargs["transport"] = transport
        elif self.settings.github_proxy:
            # http(s):// and socks5:// both go through httpx's proxy support
            client_kwargs["proxy"] = self.settings.github_proxy
        self.client = httpx.AsyncClient(**client_kwargs)

    async def aclose(self) -> None:
        await self.client.aclose()

    def build_query(self, language: str) -> str:
        return SearchQuery(language=language, min_stars=self.settings.min_stars).to_query_string()

    async def search_page(
        self, params: Dict[str, Any], token: CancellationToken
    ) -> SearchResultPage:
        """One GET against the search endpoint, aborted if ``token`` is cancelled."""
        token.raise_if_cancelled()
        logger.debug(f"[search] GET {SEARCH_PATH} params={params}")
        try:
            resp = await token.guard(self.client.get(SEARCH_PATH, params=params))
        except httpx.RequestError as exc:
            raise from_transport(exc) from exc
        token.raise_if_cancelled()

        if not resp.is_success:
            error = normalize(resp)
            logger.warning(f"[search] GitHub {resp.status_code}: {error.message}")
            raise error
        try:
            return SearchResultPage.model_validate(resp.json())
        except (ValueError, ValidationError) as exc:
            logger.warning(f"[search] unreadable {resp.status_code} body: {exc}")
            raise invalid_body(resp) from exc

    async def fetch_random_repository(
        self, language: str, token: CancellationToken
    ) -> Optional[RepositorySummary]:
        query = self.build_query(language)

        # a single-item page is enough to learn total_count
        probe = await self.search_page({"q": query, "per_page": 1}, token)
        if probe.total_count == 0:
            logger.info(f"[search] no matches for {query!r}")
            return None

        max_pages = page_window(
            probe.total_count,
            per_page=self.settings.per_page,
            max_pages=self.settings.max_pages,
        )
        page = uniform_int(1, max_pages)
        logger.debug(f"[search] total_count={probe.total_count} max_pages={max_pages} page={page}")

        result = await self.search_page(
            {
                "q": query,
                "sort": self.settings.sort_field,
                "order": "desc",
                "per_page": self.settings.per_page,
                "page": page,
            },
            token,
        )
        if not result.items:
            logger.info(f"[search] page {page} of {query!r} came back empty")
            return None

        repo = result.items[uniform_int(0, len(result.items) - 1)]
        logger.info(f"[search] picked {repo.full_name or repo.name} from page {page}")
        return repo
