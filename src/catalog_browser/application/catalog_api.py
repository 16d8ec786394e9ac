"""Cache-first catalog data access built on the HTTP client and expiring cache.

Usage example:
    from catalog_browser.application.catalog_api import CatalogApi

    api = CatalogApi(http_client=client, cache=cache)
    refs = await api.get_page(20, 0)
    details = await api.get_many_details(refs)
"""

from __future__ import annotations

import asyncio
from collections.abc import Callable
from typing import override

from ..exceptions import RequestCancelledError, RequestError
from ..infrastructure.cancellation import CancellationToken
from ..infrastructure.io.validation import (
    parse_category_refs,
    parse_item_detail,
    parse_ref_list,
    parse_variant_refs,
)
from ..observability import get_logger
from ..protocols import CacheStore, CatalogSource, HttpClient
from ..types import CatalogItemDetail, CatalogItemRef

logger = get_logger("catalog_browser.application.catalog_api")

DEFAULT_BASE_URL = "https://pokeapi.co/api/v2"


def _refs_payload(refs: list[CatalogItemRef]) -> dict[str, object]:
    return {"results": [ref.to_payload() for ref in refs]}


def canonical_key(id_or_name: str | int) -> str:
    """Lowercased, trimmed identifier used for detail URLs and cache keys."""
    return str(id_or_name).strip().lower()


class CatalogApi(CatalogSource):
    """Domain operations over the upstream catalog API, cache-first.

    Errors from the HTTP client pass through unchanged; this layer only
    decides whether a request is needed and how to batch it.
    """

    def __init__(
        self,
        *,
        http_client: HttpClient,
        cache: CacheStore,
        base_url: str = DEFAULT_BASE_URL,
        detail_batch_size: int = 5,
        name_index_limit: int = 10000,
    ) -> None:
        if detail_batch_size < 1:
            raise ValueError("detail_batch_size must be >= 1")
        self.http_client = http_client
        self.cache = cache
        self.base_url = base_url.rstrip("/")
        self.detail_batch_size = detail_batch_size
        self.name_index_limit = name_index_limit

    def page_url(self, batch_size: int, offset: int) -> str:
        return f"{self.base_url}/pokemon?limit={batch_size}&offset={offset}"

    def detail_url(self, id_or_name: str | int) -> str:
        return f"{self.base_url}/pokemon/{canonical_key(id_or_name)}"

    def category_url(self, category: str) -> str:
        return f"{self.base_url}/type/{canonical_key(category)}"

    def species_url(self, name: str) -> str:
        return f"{self.base_url}/pokemon-species/{canonical_key(name)}"

    @override
    async def get_page(
        self,
        batch_size: int,
        offset: int,
        *,
        cancel_token: CancellationToken | None = None,
    ) -> list[CatalogItemRef]:
        url = self.page_url(batch_size, offset)
        return await self._cached_refs(url, parse_ref_list, cancel_token)

    @override
    async def get_detail(
        self,
        id_or_name: str | int,
        *,
        cancel_token: CancellationToken | None = None,
    ) -> CatalogItemDetail:
        url = self.detail_url(id_or_name)
        cached = await self.cache.get(url)
        if isinstance(cached, dict):
            try:
                return CatalogItemDetail.from_payload(cached)
            except (KeyError, TypeError, ValueError):
                logger.warning("Ignoring malformed cached detail for %s", url)

        payload = await self.http_client.get_json(url, cancel_token=cancel_token)
        # Only the modelled fields are kept, bounding cache size
        detail = parse_item_detail(payload, url=url)
        await self.cache.set(url, detail.to_payload())
        return detail

    @override
    async def get_by_category(
        self,
        category: str,
        *,
        cancel_token: CancellationToken | None = None,
    ) -> list[CatalogItemRef]:
        url = self.category_url(category)
        return await self._cached_refs(url, parse_category_refs, cancel_token)

    @override
    async def get_variants(
        self,
        name: str,
        *,
        cancel_token: CancellationToken | None = None,
    ) -> list[CatalogItemRef]:
        url = self.species_url(name)
        return await self._cached_refs(url, parse_variant_refs, cancel_token)

    @override
    async def get_all_names(
        self,
        *,
        cancel_token: CancellationToken | None = None,
    ) -> list[CatalogItemRef]:
        url = self.page_url(self.name_index_limit, 0)
        # The catalog rarely changes, so any cached index is good enough
        return await self._cached_refs(url, parse_ref_list, cancel_token, ignore_expiry=True)

    @override
    async def get_many_details(
        self,
        refs: list[CatalogItemRef],
        *,
        cancel_token: CancellationToken | None = None,
    ) -> list[CatalogItemDetail]:
        """Fetch details batch by batch, concurrently within each batch.

        Individual failures are logged and left out. If every item fails,
        the first failure is raised so callers can classify it.

        Raises:
            RequestCancelledError: If `cancel_token` fired.
            RequestError: If no item could be fetched.
        """
        results: list[CatalogItemDetail] = []
        first_error: RequestError | None = None
        for start in range(0, len(refs), self.detail_batch_size):
            batch = refs[start : start + self.detail_batch_size]
            responses = await asyncio.gather(
                *(self.get_detail(ref.name, cancel_token=cancel_token) for ref in batch),
                return_exceptions=True,
            )
            for ref, response in zip(batch, responses, strict=True):
                if isinstance(response, CatalogItemDetail):
                    results.append(response)
                    continue
                if isinstance(response, RequestCancelledError):
                    raise response
                if not isinstance(response, RequestError):
                    raise response
                logger.warning("Skipping %s: %s", ref.name, response)
                first_error = first_error or response

        if refs and not results and first_error is not None:
            raise first_error
        return results

    async def _cached_refs(
        self,
        url: str,
        parse: Callable[..., list[CatalogItemRef]],
        cancel_token: CancellationToken | None,
        *,
        ignore_expiry: bool = False,
    ) -> list[CatalogItemRef]:
        cached = await self.cache.get(url, ignore_expiry=ignore_expiry)
        if cached is not None:
            try:
                return parse_ref_list(cached, url=url)
            except RequestError:
                logger.warning("Ignoring malformed cached refs for %s", url)

        payload = await self.http_client.get_json(url, cancel_token=cancel_token)
        refs = parse(payload, url=url)
        await self.cache.set(url, _refs_payload(refs))
        return refs
