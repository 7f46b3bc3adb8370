import argparse
import logging
import signal
import sys
import threading
from pathlib import Path
from typing import List, Optional

from pydantic import ValidationError

from hlscheck.config import MonitorConfig, get_config
from hlscheck.exceptions import ConfigurationError, HLSCheckError
from hlscheck.logging_config import setup_logging
from hlscheck.services.dispatcher import start_playlist_checker

logger = logging.getLogger("hlscheck")


def parse_args(argv: Optional[List[str]] = None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(
        prog="hlscheck",
        description="Comprueba de forma continua los segmentos de un stream HLS en vivo",
    )
    parser.add_argument(
        "--url", help="URL del stream a comprobar (playlist master o variante)"
    )
    parser.add_argument(
        "--logfile", type=Path, help="Archivo al que enviar también el log"
    )
    parser.add_argument(
        "--config",
        default="config.env",
        help="Archivo .env con la configuración (opcional)",
    )
    return parser.parse_args(argv)


def load_config(args: argparse.Namespace) -> MonitorConfig:
    """La línea de comandos tiene prioridad sobre el .env y el entorno."""
    try:
        config = get_config(args.config)
    except ValidationError as e:
        raise ConfigurationError(f"Configuración inválida: {e}")

    overrides = {}
    if args.url:
        overrides["url"] = args.url.strip()
    if args.logfile:
        overrides["logfile"] = args.logfile
    if overrides:
        config = config.model_copy(update=overrides)

    if not config.url:
        raise ConfigurationError("Falta la URL del stream (--url o HLSCHECK_URL)")
    return config


def wait_for_shutdown(stop_event: threading.Event) -> None:
    """Bloquea hasta recibir SIGINT o SIGTERM."""

    def handle_signal(signum, frame):
        logger.info(f"Señal {signal.Signals(signum).name} recibida. Deteniendo...")
        stop_event.set()

    signal.signal(signal.SIGINT, handle_signal)
    signal.signal(signal.SIGTERM, handle_signal)

    while not stop_event.wait(1.0):
        pass


def main(argv: Optional[List[str]] = None) -> int:
    args = parse_args(argv)

    try:
        config = load_config(args)
        setup_logging(config.logfile)
    except ConfigurationError as e:
        setup_logging()
        logger.error(str(e))
        return 1
    except OSError as e:
        setup_logging()
        logger.error(f"No se pudo abrir el archivo de log: {e}")
        return 1

    logger.info(f">>> Iniciando comprobación HLS: {config.url} <<<")
    try:
        monitors = start_playlist_checker(config.url, config)  # type: ignore[arg-type]
    except HLSCheckError as e:
        logger.error(f"Fallo al obtener la playlist inicial: {e}")
        return 1

    wait_for_shutdown(threading.Event())

    for monitor in monitors:
        monitor.stop()
    for monitor in monitors:
        state = monitor.snapshot()
        logger.info(
            f"Resumen {state.url}: 4xx={state.client_error_count} "
            f"5xx={state.server_error_count} protocolo={state.protocol_error_count} "
            f"vacíos={state.empty_segment_error_count}"
        )
    return 0


def run():
    sys.exit(main())
