from .loader import fetch_and_parse
from .models import Entry, Playlist, PlaylistKind
from .parser import PlaylistParser, parse

__all__ = [
    "Entry",
    "Playlist",
    "PlaylistKind",
    "PlaylistParser",
    "fetch_and_parse",
    "parse",
]
