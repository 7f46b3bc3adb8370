import enum

from pydantic import BaseModel, Field


class CheckResult(enum.Enum):
    OK = "ok"
    CLIENT_ERROR = "client_error"
    SERVER_ERROR = "server_error"
    PROTOCOL_ERROR = "protocol_error"
    EMPTY_SEGMENT_ERROR = "empty_segment_error"


class MonitorPhase(enum.Enum):
    POLLING = "polling"
    REFRESHING = "refreshing"
    DIFFING = "diffing"
    DISPATCHING = "dispatching"


class VariantMonitorState(BaseModel):
    """
    Estado de una variante. Pertenece en exclusiva a su monitor: solo su
    propio bucle lo modifica y los contadores solo crecen.
    """

    url: str = Field(frozen=True)
    # Mayor número de secuencia ya enviado a comprobar
    last_seen_sequence: int = Field(default=0, ge=0)

    client_error_count: int = 0
    server_error_count: int = 0
    protocol_error_count: int = 0
    empty_segment_error_count: int = 0

    @property
    def total_errors(self) -> int:
        return (
            self.client_error_count
            + self.server_error_count
            + self.protocol_error_count
            + self.empty_segment_error_count
        )
