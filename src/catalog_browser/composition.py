"""Composition root for wiring CLI dependencies."""

from __future__ import annotations

from pathlib import Path

from .application.catalog_api import CatalogApi
from .cli import CliDependencies, create_app
from .config import CatalogConfig
from .domain.favorites import FavoritesStore
from .infrastructure import DiskStorage, ExpiringCache, ProbeConnectivity, build_http_client

CACHE_NAMESPACE = "catalog_v1_"
FAVORITES_NAMESPACE = "favorites_v1_"


def build_cli_dependencies(*, config: CatalogConfig) -> CliDependencies:
    """Build concrete dependencies for CLI commands.

    Cache entries and favourites share a directory but not a namespace, so
    clearing the cache (including quota recovery) leaves favourites intact.

    Args:
        config: Catalog configuration (used for client, cache and probe wiring).
    """
    connectivity = ProbeConnectivity(
        host=config.probe_host,
        port=config.probe_port,
        staleness_seconds=config.probe_staleness_seconds,
    )
    cache_root = Path(config.cache_dir)
    cache_storage = DiskStorage(
        cache_root,
        namespace=CACHE_NAMESPACE,
        max_bytes=config.cache_max_bytes,
    )
    cache = ExpiringCache(
        storage=cache_storage,
        connectivity=connectivity,
        ttl_seconds=config.cache_ttl_seconds,
    )
    http_client = build_http_client(
        connectivity=connectivity,
        timeout_seconds=config.timeout_seconds,
        max_attempts=config.max_attempts,
        backoff_base_seconds=config.backoff_base_seconds,
        jitter_seconds=config.backoff_jitter_seconds,
        max_backoff_seconds=config.backoff_max_seconds,
    )
    catalog = CatalogApi(
        http_client=http_client,
        cache=cache,
        base_url=config.base_url,
        detail_batch_size=config.detail_batch_size,
        name_index_limit=config.name_index_limit,
    )
    favorites = FavoritesStore(DiskStorage(cache_root, namespace=FAVORITES_NAMESPACE))
    return CliDependencies(
        catalog=catalog,
        cache=cache,
        connectivity=connectivity,
        favorites=favorites,
    )


app = create_app(build_cli_dependencies)
