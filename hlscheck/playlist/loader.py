import logging

from hlscheck.exceptions import FetchError, PlaylistFetchError
from hlscheck.interfaces import HttpFetcher

from .models import Playlist
from .parser import parse

logger = logging.getLogger(__name__)


def fetch_and_parse(url: str, fetcher: HttpFetcher) -> Playlist:
    """
    Descarga la playlist en `url` y la interpreta usando `url` como base.

    Lanza `PlaylistFetchError` si el servidor no respondió o respondió con
    error, y `PlaylistParseError` si respondió pero el contenido es inválido.
    """
    try:
        body = fetcher.fetch(url)
    except PlaylistFetchError:
        raise
    except FetchError as e:
        raise PlaylistFetchError(url, f"fetching playlist failed: {e.reason}") from e

    logger.debug(f"Playlist descargada: {url} ({len(body)} bytes)")
    text = body.decode("utf-8-sig", errors="replace")
    return parse(url, text)
