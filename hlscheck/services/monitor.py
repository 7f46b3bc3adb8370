import logging
import threading
import time
from typing import Callable, Optional

from hlscheck.config import MonitorConfig
from hlscheck.exceptions import PlaylistFetchError, PlaylistParseError
from hlscheck.interfaces import HttpFetcher
from hlscheck.playlist import fetch_and_parse

from .checker import SegmentChecker
from .models import MonitorPhase, VariantMonitorState


class VariantMonitor:
    """
    Vigila una playlist variante: en cada tick la vuelve a descargar, detecta
    los segmentos nuevos por su número de secuencia y los comprueba.

    Construir el monitor no lanza nada; `start()` arranca el bucle en un hilo
    propio y `run_cycle()` ejecuta un único ciclo (útil en pruebas).
    """

    def __init__(
        self,
        url: str,
        fetcher: HttpFetcher,
        poll_interval: float = 1.0,
        retry_attempts: int = 3,
        retry_delay: float = 0.25,
        logger: Optional[logging.Logger] = None,
        sleep: Callable[[float], None] = time.sleep,
        wait: Optional[Callable[[float], bool]] = None,
        clock: Callable[[], float] = time.monotonic,
    ):
        self.state = VariantMonitorState(url=url)
        self.fetcher = fetcher
        self.poll_interval = poll_interval
        self.logger = logger or logging.getLogger(f"hlscheck.monitor[{url}]")
        self.checker = SegmentChecker(
            fetcher,
            self.state,
            logger=self.logger,
            attempts=retry_attempts,
            retry_delay=retry_delay,
            sleep=sleep,
        )
        self.phase = MonitorPhase.POLLING
        self.consecutive_failures = 0

        self._stop_event = threading.Event()
        self._wait = wait or self._stop_event.wait
        self._clock = clock
        self._thread: Optional[threading.Thread] = None

    @classmethod
    def from_config(
        cls, url: str, fetcher: HttpFetcher, config: MonitorConfig
    ) -> "VariantMonitor":
        return cls(
            url,
            fetcher,
            poll_interval=config.poll_interval,
            retry_attempts=config.retry_attempts,
            retry_delay=config.retry_delay,
        )

    @property
    def url(self) -> str:
        return self.state.url

    def snapshot(self) -> VariantMonitorState:
        """Copia del estado actual; el estado real no se comparte."""
        return self.state.model_copy()

    def run_cycle(self) -> int:
        """
        Ejecuta un ciclo refrescar -> comparar -> despachar.
        Devuelve cuántos segmentos se enviaron a comprobar.
        """
        self.phase = MonitorPhase.REFRESHING
        try:
            playlist = fetch_and_parse(self.url, self.fetcher)
        except PlaylistFetchError as e:
            self._on_refresh_failure(
                f"Fallo al descargar la playlist variante: {self.url} ({e.reason})"
            )
            return 0
        except PlaylistParseError as e:
            self._on_refresh_failure(
                f"Playlist variante inválida: {self.url} ({e})", line=e.line
            )
            return 0

        if self.consecutive_failures > 0:
            self.logger.info(
                f"Playlist recuperada tras {self.consecutive_failures} fallos: {self.url}"
            )
            self.consecutive_failures = 0

        self.phase = MonitorPhase.DIFFING
        last_seen = self.state.last_seen_sequence
        segments = playlist.segments
        new_segments = sorted(
            (s for s in segments if s.media_sequence > last_seen),
            key=lambda s: s.media_sequence,
        )
        if segments and not new_segments and segments[-1].media_sequence < last_seen:
            self.logger.warning(
                f"La secuencia de la playlist retrocedió ({segments[-1].media_sequence} < {last_seen}): {self.url}",
                extra={"url": self.url},
            )

        self.phase = MonitorPhase.DISPATCHING
        for segment in new_segments:
            self.checker.retry_check_segment(segment)
            # Un segmento cuenta como visto al intentarse, no al tener éxito
            self.state.last_seen_sequence = segment.media_sequence

        if new_segments:
            self.logger.debug(
                f"{len(new_segments)} segmentos nuevos comprobados, secuencia={self.state.last_seen_sequence}: {self.url}"
            )
        self.phase = MonitorPhase.POLLING
        return len(new_segments)

    def _on_refresh_failure(self, message: str, line: Optional[int] = None):
        self.consecutive_failures += 1
        extra = {"url": self.url}
        if line is not None:
            extra["line"] = line
        self.logger.error(message, extra=extra)
        self.phase = MonitorPhase.POLLING

    def run_forever(self):
        """
        Bucle principal. Un ciclo por tick; si un ciclo dura más que el
        intervalo, el siguiente empieza al terminar, nunca en paralelo.
        """
        self.logger.info(f"Iniciando monitor de la variante: {self.url}", extra={"url": self.url})
        next_tick = self._clock() + self.poll_interval

        while not self._stop_event.is_set():
            delay = max(0.0, next_tick - self._clock())
            if self._wait(delay):
                break

            try:
                self.run_cycle()
            except Exception as e:
                self.phase = MonitorPhase.POLLING
                self.logger.error(
                    f"Error inesperado en el ciclo de {self.url}: {e}", exc_info=True
                )

            next_tick += self.poll_interval
            now = self._clock()
            if next_tick < now:
                next_tick = now

        self.logger.info(f"Monitor detenido: {self.url}", extra={"url": self.url})

    def start(self) -> "VariantMonitor":
        if self._thread is not None and self._thread.is_alive():
            return self
        self._thread = threading.Thread(
            target=self.run_forever, name=f"monitor[{self.url}]", daemon=True
        )
        self._thread.start()
        return self

    def stop(self):
        """Pide terminar tras el ciclo en curso. Las peticiones en vuelo no se cancelan."""
        self._stop_event.set()

    def join(self, timeout: Optional[float] = None):
        if self._thread is not None:
            self._thread.join(timeout)

    @property
    def is_running(self) -> bool:
        return self._thread is not None and self._thread.is_alive()
