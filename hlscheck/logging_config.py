import logging
import os
import sys
from pathlib import Path
from typing import List, Optional, Union


class FieldsFormatter(logging.Formatter):
    """Añade al mensaje los campos estructurados pasados con `extra=`."""

    fields = ("rendition", "result", "line")

    def format(self, record: logging.LogRecord) -> str:
        message = super().format(record)
        pairs = [
            f"{name}={getattr(record, name)}"
            for name in self.fields
            if getattr(record, name, None) is not None
        ]
        if pairs:
            message = f"{message} [{' '.join(pairs)}]"
        return message


def logger_formatter() -> logging.Formatter:
    formatter = FieldsFormatter(
        "%(asctime)s [%(levelname)s] [%(threadName)s] %(message)s",
        datefmt="%d-%m-%Y %I:%M:%S %p",
    )
    return formatter


def handler_stream(formatter: logging.Formatter) -> logging.StreamHandler:
    console_handler = logging.StreamHandler()
    console_handler.setLevel(logging.INFO)
    console_handler.setFormatter(formatter)
    return console_handler


def handler_file(path: Union[str, Path], formatter: logging.Formatter) -> logging.FileHandler:
    Path(path).parent.mkdir(parents=True, exist_ok=True)
    file_handler = logging.FileHandler(path, encoding="utf-8")
    file_handler.setLevel(logging.DEBUG)
    file_handler.setFormatter(formatter)
    return file_handler


def handler_supervisor_stdout(formatter: logging.Formatter) -> logging.StreamHandler:
    handler = logging.StreamHandler(sys.stdout)
    handler.setLevel(logging.DEBUG)
    handler.addFilter(lambda record: record.levelno < logging.WARNING)
    handler.setFormatter(formatter)
    return handler


def handler_supervisor_stderr(formatter: logging.Formatter) -> logging.StreamHandler:
    handler = logging.StreamHandler(sys.stderr)
    handler.setLevel(logging.WARNING)
    handler.setFormatter(formatter)
    return handler


def setup_logging(path: Optional[Union[str, Path]] = None) -> None:
    """
    Configura el logging de la aplicación: consola siempre y, si se indica
    `path`, también un archivo. Lanza OSError si el archivo no se puede abrir.
    """
    formatter = logger_formatter()

    running_under_supervisord = any(
        key in os.environ
        for key in [
            "SUPERVISOR_PROCESS_NAME",
            "SUPERVISOR_ENABLED",
            "SUPERVISOR_GROUP_NAME",
        ]
    )

    handlers: List[logging.Handler]
    if running_under_supervisord:
        handlers = [
            handler_supervisor_stdout(formatter),
            handler_supervisor_stderr(formatter),
        ]
    else:
        handlers = [handler_stream(formatter)]

    if path:
        handlers.append(handler_file(path, formatter))

    logging.basicConfig(
        level=logging.DEBUG,
        handlers=handlers,
        force=True,
    )

    # Silenciar loggers de librerías de terceros
    libraries_to_silence = [
        "urllib3",
        "requests",
    ]
    for lib_name in libraries_to_silence:
        logging.getLogger(lib_name).setLevel(logging.CRITICAL)
