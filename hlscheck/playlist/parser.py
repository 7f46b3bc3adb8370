import logging
import re
from typing import Callable, List, Optional, Tuple
from urllib.parse import urljoin, urlparse, urlunparse

from hlscheck.exceptions import (
    InvalidNumberError,
    MalformedTagError,
    MissingAttributeError,
    NotExtendedM3UError,
    PlaylistParseError,
    URLJoinError,
)

from .models import Entry, Playlist, PlaylistKind

logger = logging.getLogger(__name__)

_SCHEME_RE = re.compile(r"^[A-Za-z][A-Za-z0-9+.\-]*:")
_UINT_RE = re.compile(r"^[0-9]+$")
_FLOAT_RE = re.compile(r"^(?:[0-9]+(?:\.[0-9]*)?|\.[0-9]+)(?:[eE][+\-]?[0-9]+)?$")


def base_directory(playlist_url: str) -> str:
    """
    Devuelve la URL del directorio de la playlist (sin el último componente).
    E.g. https://host/path/live.m3u8 --> https://host/path/
    """
    try:
        parsed = urlparse(playlist_url)
    except ValueError as e:
        raise URLJoinError(f"failed to parse playlist url: {e}")

    if not parsed.scheme or not parsed.netloc:
        raise URLJoinError(f"playlist url is not absolute: {playlist_url!r}")

    directory = parsed.path.rsplit("/", 1)[0] + "/"
    return urlunparse((parsed.scheme, parsed.netloc, directory, "", "", ""))


def is_absolute_reference(reference: str) -> bool:
    return bool(_SCHEME_RE.match(reference))


def split_attribute_list(attribute_list: str) -> List[str]:
    """Separa por comas respetando los valores entre comillas (CODECS="a,b")."""
    parts = []
    current = []
    quoted = False
    for char in attribute_list:
        if char == '"':
            quoted = not quoted
        if char == "," and not quoted:
            parts.append("".join(current))
            current = []
        else:
            current.append(char)
    parts.append("".join(current))
    return parts


def _cut_prefix(tag: str, prefix: str) -> Optional[str]:
    if not tag.startswith(prefix):
        return None
    return tag[len(prefix) :]


def _parse_uint(value: str, message: str, line: int) -> int:
    value = value.strip()
    if not _UINT_RE.match(value):
        raise InvalidNumberError(message, line)
    return int(value)


def _parse_duration(value: str, message: str, line: int) -> float:
    value = value.strip()
    if not _FLOAT_RE.match(value):
        raise InvalidNumberError(message, line)
    duration = float(value)
    if duration == float("inf"):
        raise InvalidNumberError(message, line)
    return duration


class PlaylistParser:
    """
    Convierte el texto de una playlist M3U8 extendida en un `Playlist`.

    Cada instancia procesa un único texto. El tipo (master o variante) se
    actualiza con cada tag de stream o segmento: gana el último encontrado.
    """

    def __init__(self, playlist_url: str):
        self.playlist_url = playlist_url
        self.base_url = base_directory(playlist_url)
        self.playlist = Playlist()
        self.is_ext_m3u = False
        self.pending: Optional[dict] = None
        self.line = 0

        self.tag_handlers: Tuple[Tuple[str, Callable[[str], None]], ...] = (
            ("EXTM3U", self._on_header),
            ("EXT-X-STREAM-INF", self._on_stream_inf),
            ("EXTINF", self._on_inf),
            ("EXT-X-MEDIA-SEQUENCE", self._on_media_sequence),
            ("EXT-X-TARGETDURATION", self._on_target_duration),
        )

    def parse(self, text: str) -> Playlist:
        for line_number, raw_line in enumerate(text.split("\n"), start=1):
            self.line = line_number
            line = raw_line.strip()
            if not line:
                continue

            if line.startswith("#"):
                # Los comentarios y tags desconocidos se ignoran
                if line.startswith("#EXT"):
                    self._dispatch_tag(line[1:])
                continue

            self._on_reference(line)

        if self.pending is not None:
            logger.debug(
                f"Tag sin referencia al final de la playlist ignorado: {self.playlist_url}"
            )

        # Se valida una sola vez al final; no se devuelve nada parcial.
        if not self.is_ext_m3u:
            raise NotExtendedM3UError()

        return self.playlist

    def _dispatch_tag(self, tag: str):
        for prefix, handler in self.tag_handlers:
            if tag.startswith(prefix):
                handler(tag)
                return

    def _on_header(self, tag: str):
        self.is_ext_m3u = True

    def _on_stream_inf(self, tag: str):
        attr_list = _cut_prefix(tag, "EXT-X-STREAM-INF:")
        if attr_list is None:
            raise MalformedTagError("malformed EXT-X-STREAM-INF tag", self.line)

        entry = {"kind": PlaylistKind.MASTER}
        for attr in split_attribute_list(attr_list):
            if "=" not in attr:
                raise MissingAttributeError(
                    "malformed attribute in EXT-X-STREAM-INF tag", self.line
                )
            name, value = attr.split("=", 1)
            if name == "BANDWIDTH":
                entry["bandwidth_bps"] = _parse_uint(
                    value,
                    "unable to parse bandwidth attribute in EXT-X-STREAM-INF tag",
                    self.line,
                )
            elif name == "CODECS":
                entry["codecs"] = value.strip('" ')

        if "bandwidth_bps" not in entry:
            raise MissingAttributeError(
                "missing bandwidth attribute in EXT-X-STREAM-INF tag", self.line
            )

        self.playlist.kind = PlaylistKind.MASTER
        self.pending = entry

    def _on_inf(self, tag: str):
        attr_list = _cut_prefix(tag, "EXTINF:")
        if attr_list is None:
            raise MalformedTagError("malformed EXTINF tag", self.line)

        parts = attr_list.split(",", 1)
        entry = {
            "kind": PlaylistKind.VARIANT,
            "duration_sec": _parse_duration(
                parts[0], "unable to parse segment duration from EXTINF tag", self.line
            ),
        }
        if len(parts) > 1:
            entry["extra_info"] = parts[1]

        self.playlist.kind = PlaylistKind.VARIANT
        self.pending = entry

    def _on_media_sequence(self, tag: str):
        value = _cut_prefix(tag, "EXT-X-MEDIA-SEQUENCE:")
        if value is None:
            raise MalformedTagError("malformed EXT-X-MEDIA-SEQUENCE tag", self.line)

        sequence = _parse_uint(
            value,
            "unable to parse media sequence from EXT-X-MEDIA-SEQUENCE tag",
            self.line,
        )
        if self.playlist.segments and sequence < self.playlist.current_media_sequence:
            raise PlaylistParseError(
                "EXT-X-MEDIA-SEQUENCE moves the sequence cursor backwards", self.line
            )
        self.playlist.current_media_sequence = sequence

    def _on_target_duration(self, tag: str):
        value = _cut_prefix(tag, "EXT-X-TARGETDURATION:")
        if value is None:
            raise MalformedTagError("malformed EXT-X-TARGETDURATION tag", self.line)

        self.playlist.target_duration_sec = _parse_uint(
            value,
            "unable to parse target duration from EXT-X-TARGETDURATION tag",
            self.line,
        )

    def _on_reference(self, reference: str):
        # Una referencia sin tag previo toma el tipo vigente de la playlist
        entry = self.pending or {"kind": self.playlist.kind}
        entry["url"] = self._resolve(reference)

        if entry["kind"] == PlaylistKind.VARIANT:
            entry["media_sequence"] = self.playlist.current_media_sequence
            self.playlist.current_media_sequence += 1

        self.playlist.entries.append(Entry(**entry))
        self.pending = None

    def _resolve(self, reference: str) -> str:
        if is_absolute_reference(reference):
            return reference
        try:
            return urljoin(self.base_url, reference)
        except ValueError as e:
            raise URLJoinError(f"unable to join url: {e}", self.line)


def parse(playlist_url: str, text: str) -> Playlist:
    """
    Interpreta `text` como playlist M3U8 extendida ubicada en `playlist_url`.
    Lanza `PlaylistParseError` (o una subclase) si el texto es inválido.
    """
    return PlaylistParser(playlist_url).parse(text)
