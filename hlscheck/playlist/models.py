import enum
from typing import List, Optional

from pydantic import BaseModel, Field, field_validator


class PlaylistKind(enum.Enum):
    MASTER = "master"
    VARIANT = "variant"


class Entry(BaseModel):
    """
    Recurso referenciado por una playlist.

    En una playlist master los campos útiles son `bandwidth_bps` y `codecs`;
    en una variante, `media_sequence`, `duration_sec` y `extra_info`.
    """

    kind: PlaylistKind
    url: str

    # Master
    bandwidth_bps: int = Field(default=0, ge=0)
    codecs: Optional[str] = None

    # Variante
    media_sequence: int = Field(default=0, ge=0)
    duration_sec: float = Field(default=0.0, ge=0)
    extra_info: Optional[str] = None

    @field_validator("url")
    @classmethod
    def url_not_empty(cls, v: str) -> str:
        if not v:
            raise ValueError("La URL de la entrada no puede estar vacía")
        return v

    @property
    def is_segment(self) -> bool:
        return self.kind == PlaylistKind.VARIANT


class Playlist(BaseModel):
    # Antes de encontrar un tag de stream/segmento se asume variante.
    kind: PlaylistKind = PlaylistKind.VARIANT
    entries: List[Entry] = Field(default_factory=list)
    current_media_sequence: int = Field(default=0, ge=0)
    target_duration_sec: int = Field(default=0, ge=0)

    @property
    def segments(self) -> List[Entry]:
        return [e for e in self.entries if e.is_segment]

    @property
    def variants(self) -> List[Entry]:
        return [e for e in self.entries if not e.is_segment]
