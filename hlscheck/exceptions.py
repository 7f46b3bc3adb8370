from typing import Optional


class HLSCheckError(Exception):
    """Clase base para todas las excepciones del proyecto."""

    pass


# Excepciones del parser de playlists
class PlaylistParseError(HLSCheckError):
    """La playlist no pudo interpretarse. Ningún dato parcial es válido."""

    def __init__(self, message: str, line: Optional[int] = None):
        super().__init__(message)
        self.message = message
        self.line = line

    def __str__(self):
        if self.line is None:
            return self.message
        return f"line {self.line}: {self.message}"


class MalformedTagError(PlaylistParseError):
    """El tag no tiene la forma esperada."""

    pass


class MissingAttributeError(PlaylistParseError):
    """Falta un atributo obligatorio o su sintaxis es inválida."""

    pass


class InvalidNumberError(PlaylistParseError):
    """Se esperaba un valor numérico."""

    pass


class NotExtendedM3UError(PlaylistParseError):
    """El texto no contiene el encabezado #EXTM3U."""

    def __init__(self, message: str = "playlist is not in extended m3u format"):
        super().__init__(message)


class URLJoinError(PlaylistParseError):
    """No se pudo resolver la URL de una referencia."""

    pass


# Excepciones de red
class FetchError(HLSCheckError):
    """Fallo a nivel de transporte al consultar una URL."""

    def __init__(self, url: str, reason: str):
        super().__init__(f"{reason} ({url})")
        self.url = url
        self.reason = reason


class TransportError(FetchError):
    """No se obtuvo respuesta HTTP (conexión rechazada, timeout, respuesta inválida)."""

    pass


class BodyReadError(FetchError):
    """Se recibió respuesta pero el cuerpo no pudo leerse completo."""

    pass


class PlaylistFetchError(FetchError):
    """La playlist no pudo descargarse; distinto de un error de parseo."""

    pass


class ConfigurationError(HLSCheckError):
    """Error fatal de arranque (ej: falta la URL)."""

    pass
