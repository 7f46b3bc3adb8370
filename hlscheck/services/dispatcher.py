import logging
from typing import Callable, List, Optional

from hlscheck.config import MonitorConfig
from hlscheck.interfaces import HttpFetcher
from hlscheck.playlist import PlaylistKind, fetch_and_parse

from .http_client import RequestsFetcher
from .monitor import VariantMonitor

logger = logging.getLogger(__name__)


def start_playlist_checker(
    url: str,
    config: MonitorConfig,
    fetcher_factory: Optional[Callable[[], HttpFetcher]] = None,
    start: bool = True,
) -> List[VariantMonitor]:
    """
    Descarga la URL inicial y crea un monitor por cada variante.

    Si es una playlist master se vigila cada variante listada; si es una
    variante se vigila la propia URL. Cada monitor recibe su propio fetcher.
    Los errores de descarga o parseo de la URL inicial se propagan.
    """
    new_fetcher = fetcher_factory or (lambda: RequestsFetcher.from_config(config))

    startup_fetcher = new_fetcher()
    try:
        playlist = fetch_and_parse(url, startup_fetcher)
    finally:
        startup_fetcher.close()

    if playlist.kind == PlaylistKind.MASTER:
        variant_urls = [entry.url for entry in playlist.variants]
        logger.info(f"Playlist master con {len(variant_urls)} variantes: {url}")
    else:
        variant_urls = [url]
        logger.info(f"Playlist variante: {url}")

    if not variant_urls:
        logger.warning(f"La playlist no contiene variantes que vigilar: {url}")

    monitors = []
    for variant_url in variant_urls:
        monitor = VariantMonitor.from_config(variant_url, new_fetcher(), config)
        if start:
            monitor.start()
        monitors.append(monitor)
    return monitors
