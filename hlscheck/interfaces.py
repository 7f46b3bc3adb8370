from abc import ABC, abstractmethod

from hlscheck.exceptions import FetchError


class HttpResponse(ABC):
    """
    Respuesta HTTP cuyo cuerpo todavía no se ha leído.
    Separa "hubo respuesta" de "el cuerpo se pudo leer".
    """

    url: str
    status_code: int

    @abstractmethod
    def read(self) -> bytes:
        """Lee el cuerpo completo. Lanza `BodyReadError` si la lectura falla."""
        pass

    def close(self) -> None:
        pass

    def __enter__(self):
        return self

    def __exit__(self, exc_type, exc_val, exc_tb):
        self.close()
        return False


class HttpFetcher(ABC):
    """
    Contrato de la capacidad "GET por HTTP" que consumen el parser y el checker.
    """

    @abstractmethod
    def get(self, url: str) -> HttpResponse:
        """
        Realiza un GET. Lanza `TransportError` si no se obtuvo respuesta.
        """
        pass

    def close(self) -> None:
        pass

    def fetch(self, url: str) -> bytes:
        """GET completo: exige un status de éxito y devuelve el cuerpo."""
        with self.get(url) as response:
            if response.status_code >= 400:
                raise FetchError(url, f"unexpected HTTP status {response.status_code}")
            return response.read()
