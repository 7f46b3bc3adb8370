from functools import lru_cache
from pathlib import Path
from typing import Optional, Union

from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


class MonitorConfig(BaseSettings):
    """
    Configuración del monitor.
    Prefijo en .env: HLSCHECK_ (ej: HLSCHECK_URL)
    """

    # URL de la playlist master o variante a vigilar
    url: Optional[str] = None
    logfile: Optional[Path] = None

    poll_interval: float = Field(default=1.0, gt=0)
    retry_attempts: int = Field(default=3, ge=1)
    retry_delay: float = Field(default=0.25, ge=0)

    # None = sin límite
    http_timeout: Optional[float] = Field(default=None, gt=0)
    max_body_bytes: Optional[int] = Field(default=None, gt=0)
    user_agent: str = "hlscheck/0.1"

    model_config = SettingsConfigDict(
        env_file="config.env",
        env_file_encoding="utf-8",
        env_prefix="HLSCHECK_",
        extra="ignore",
    )

    @field_validator("url", mode="before")
    @classmethod
    def empty_url_is_none(cls, v):
        if isinstance(v, str) and not v.strip():
            return None
        return v.strip() if isinstance(v, str) else v


@lru_cache()
def get_config(env_path: Union[str, Path] = "config.env") -> MonitorConfig:
    """
    Carga la configuración desde el entorno y, si existe, desde `env_path`.
    El archivo es opcional; las variables de entorno tienen prioridad.
    """
    path = Path(env_path)
    if not path.exists():
        return MonitorConfig(_env_file=None)  # type: ignore
    return MonitorConfig(_env_file=path)  # type: ignore
