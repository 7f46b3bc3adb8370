import logging
import time
from typing import Callable, Dict, Optional, Tuple

from hlscheck.exceptions import FetchError
from hlscheck.interfaces import HttpFetcher
from hlscheck.playlist.models import Entry

from .models import CheckResult, VariantMonitorState

# Resultado --> (contador a incrementar, mensaje de log)
FAILURE_COUNTERS: Dict[CheckResult, Tuple[str, str]] = {
    CheckResult.CLIENT_ERROR: (
        "client_error_count",
        "Error de cliente (4xx) al descargar el segmento",
    ),
    CheckResult.SERVER_ERROR: (
        "server_error_count",
        "Error de servidor (5xx) al descargar el segmento",
    ),
    CheckResult.PROTOCOL_ERROR: (
        "protocol_error_count",
        "Error de protocolo HTTP al descargar el segmento",
    ),
    CheckResult.EMPTY_SEGMENT_ERROR: (
        "empty_segment_error_count",
        "Se recibió un segmento vacío",
    ),
}


class SegmentChecker:
    """
    Verifica que un segmento se pueda descargar y no esté vacío.

    Es el único componente que modifica los contadores de error del estado
    de la variante.
    """

    def __init__(
        self,
        fetcher: HttpFetcher,
        state: VariantMonitorState,
        logger: Optional[logging.Logger] = None,
        attempts: int = 3,
        retry_delay: float = 0.25,
        sleep: Callable[[float], None] = time.sleep,
    ):
        if attempts < 1:
            raise ValueError("attempts debe ser al menos 1")
        self.fetcher = fetcher
        self.state = state
        self.logger = logger or logging.getLogger(__name__)
        self.attempts = attempts
        self.retry_delay = retry_delay
        self.sleep = sleep

    def check_segment(self, entry: Entry) -> CheckResult:
        """Un único GET al segmento, clasificado."""
        try:
            response = self.fetcher.get(entry.url)
        except FetchError:
            return CheckResult.PROTOCOL_ERROR

        with response:
            # 400 y 500 exactos no cuentan como error de cliente/servidor
            if response.status_code > 500:
                return CheckResult.SERVER_ERROR
            elif response.status_code > 400:
                return CheckResult.CLIENT_ERROR

            try:
                body = response.read()
            except FetchError:
                return CheckResult.PROTOCOL_ERROR

        if len(body) == 0:
            return CheckResult.EMPTY_SEGMENT_ERROR
        return CheckResult.OK

    def retry_check_segment(self, entry: Entry) -> CheckResult:
        """
        Comprueba el segmento hasta `attempts` veces y registra el resultado
        final en los contadores (nada si es OK).
        """
        result = CheckResult.OK
        for attempt in range(1, self.attempts + 1):
            result = self.check_segment(entry)
            if result == CheckResult.OK:
                break

            self.logger.debug(
                f"Intento {attempt}/{self.attempts} fallido ({result.value}): {entry.url}"
            )
            if attempt < self.attempts:
                self.sleep(self.retry_delay)

        self._record(entry, result)
        return result

    def _record(self, entry: Entry, result: CheckResult):
        if result == CheckResult.OK:
            return

        counter, message = FAILURE_COUNTERS[result]
        setattr(self.state, counter, getattr(self.state, counter) + 1)
        self.logger.error(
            f"{message}: {entry.url}",
            extra={
                "url": entry.url,
                "result": result.value,
                "rendition": self.state.url,
            },
        )
