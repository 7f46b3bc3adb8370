import logging
from typing import Optional

import requests

from hlscheck.config import MonitorConfig
from hlscheck.exceptions import BodyReadError, TransportError
from hlscheck.interfaces import HttpFetcher, HttpResponse

logger = logging.getLogger(__name__)

DEFAULT_USER_AGENT = "hlscheck/0.1"
CHUNK_SIZE = 64 * 1024


class RequestsResponse(HttpResponse):
    def __init__(
        self,
        url: str,
        response: requests.Response,
        max_body_bytes: Optional[int] = None,
    ):
        self.url = url
        self.status_code = response.status_code
        self.response = response
        self.max_body_bytes = max_body_bytes

    def read(self) -> bytes:
        chunks = []
        total = 0
        try:
            for chunk in self.response.iter_content(chunk_size=CHUNK_SIZE):
                total += len(chunk)
                if self.max_body_bytes is not None and total > self.max_body_bytes:
                    raise BodyReadError(
                        self.url, f"response body exceeds {self.max_body_bytes} bytes"
                    )
                chunks.append(chunk)
        except requests.exceptions.RequestException as e:
            raise BodyReadError(self.url, f"could not read response body: {e}")
        finally:
            self.response.close()
        return b"".join(chunks)

    def close(self) -> None:
        self.response.close()


class RequestsFetcher(HttpFetcher):
    """
    Implementación de `HttpFetcher` sobre una `requests.Session`.

    Se usa `stream=True` para distinguir un fallo de conexión (sin respuesta)
    de un fallo al leer el cuerpo. Sin `timeout` una petición colgada bloquea
    al monitor que la hizo, y solo a ese.
    """

    def __init__(
        self,
        timeout: Optional[float] = None,
        max_body_bytes: Optional[int] = None,
        user_agent: str = DEFAULT_USER_AGENT,
        session: Optional[requests.Session] = None,
    ):
        self.timeout = timeout
        self.max_body_bytes = max_body_bytes
        self.session = session or requests.Session()
        self.session.headers.update({"User-Agent": user_agent})

    @classmethod
    def from_config(cls, config: MonitorConfig) -> "RequestsFetcher":
        return cls(
            timeout=config.http_timeout,
            max_body_bytes=config.max_body_bytes,
            user_agent=config.user_agent,
        )

    def get(self, url: str) -> RequestsResponse:
        logger.debug(f"GET {url}")
        try:
            response = self.session.get(url, stream=True, timeout=self.timeout)
        except requests.exceptions.RequestException as e:
            raise TransportError(url, f"request failed: {e}")
        return RequestsResponse(url, response, self.max_body_bytes)

    def close(self) -> None:
        self.session.close()
