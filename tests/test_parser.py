import os
import sys
import unittest

sys.path.append(os.getcwd())
from hlscheck.exceptions import (
    InvalidNumberError,
    MalformedTagError,
    MissingAttributeError,
    NotExtendedM3UError,
    PlaylistParseError,
    URLJoinError,
)
from hlscheck.playlist import PlaylistKind, parse
from hlscheck.playlist.parser import base_directory, split_attribute_list

MASTER_URL = "https://host/path/master.m3u8"
VARIANT_URL = "https://host/path/live.m3u8"

MASTER_PLAYLIST = """#EXTM3U
#EXT-X-VERSION:3
#EXT-X-STREAM-INF:BANDWIDTH=1280000,CODECS="avc1.4d401f,mp4a.40.2",RESOLUTION=640x360
low/index.m3u8
#EXT-X-STREAM-INF:BANDWIDTH=2560000,CODECS= "avc1.640028"
https://cdn.example.com/hi/index.m3u8
#EXT-X-STREAM-INF:BANDWIDTH=64000
audio.m3u8
"""

VARIANT_PLAYLIST = """#EXTM3U
#EXT-X-VERSION:3
#EXT-X-TARGETDURATION:6
#EXT-X-MEDIA-SEQUENCE:100
# comentario cualquiera
#EXTINF:6.006,
segment100.ts
#EXTINF:5.5,titulo, con coma
segment101.ts

#EXTINF:6,
segment102.ts
"""


class TestMasterPlaylist(unittest.TestCase):

    def test_master_entries_in_source_order(self):
        """N pares STREAM-INF/referencia producen N entradas master en orden."""
        playlist = parse(MASTER_URL, MASTER_PLAYLIST)

        self.assertEqual(playlist.kind, PlaylistKind.MASTER)
        self.assertEqual(len(playlist.entries), 3)
        self.assertEqual(
            [e.bandwidth_bps for e in playlist.entries], [1280000, 2560000, 64000]
        )
        self.assertEqual(
            [e.url for e in playlist.entries],
            [
                "https://host/path/low/index.m3u8",
                "https://cdn.example.com/hi/index.m3u8",
                "https://host/path/audio.m3u8",
            ],
        )

    def test_codecs_are_trimmed(self):
        playlist = parse(MASTER_URL, MASTER_PLAYLIST)

        self.assertEqual(playlist.entries[0].codecs, "avc1.4d401f,mp4a.40.2")
        self.assertEqual(playlist.entries[1].codecs, "avc1.640028")
        self.assertIsNone(playlist.entries[2].codecs)

    def test_master_entries_do_not_consume_sequence_numbers(self):
        playlist = parse(MASTER_URL, MASTER_PLAYLIST)

        self.assertEqual(playlist.current_media_sequence, 0)
        self.assertEqual(playlist.variants, playlist.entries)
        self.assertEqual(playlist.segments, [])

    def test_missing_bandwidth(self):
        text = "#EXTM3U\n#EXT-X-STREAM-INF:CODECS=\"avc1\"\nlow.m3u8\n"
        with self.assertRaises(MissingAttributeError) as ctx:
            parse(MASTER_URL, text)
        self.assertEqual(ctx.exception.line, 2)

    def test_non_numeric_bandwidth(self):
        text = "#EXTM3U\n#EXT-X-STREAM-INF:BANDWIDTH=fast\nlow.m3u8\n"
        with self.assertRaises(InvalidNumberError) as ctx:
            parse(MASTER_URL, text)
        self.assertEqual(ctx.exception.line, 2)

    def test_attribute_without_value(self):
        text = "#EXTM3U\n#EXT-X-STREAM-INF:BANDWIDTH=1000,AUTOSELECT\nlow.m3u8\n"
        with self.assertRaises(MissingAttributeError):
            parse(MASTER_URL, text)

    def test_stream_inf_without_attribute_list(self):
        text = "#EXTM3U\n#EXT-X-STREAM-INF\nlow.m3u8\n"
        with self.assertRaises(MalformedTagError):
            parse(MASTER_URL, text)

    def test_attribute_value_may_contain_equals(self):
        text = "#EXTM3U\n#EXT-X-STREAM-INF:BANDWIDTH=1000,NAME=a=b\nlow.m3u8\n"
        playlist = parse(MASTER_URL, text)
        self.assertEqual(playlist.entries[0].bandwidth_bps, 1000)


class TestVariantPlaylist(unittest.TestCase):

    def test_sequence_numbers_start_at_media_sequence(self):
        """Con MEDIA-SEQUENCE=S y M segmentos: S, S+1, ..., S+M-1 y cursor S+M."""
        playlist = parse(VARIANT_URL, VARIANT_PLAYLIST)

        self.assertEqual(playlist.kind, PlaylistKind.VARIANT)
        self.assertEqual([e.media_sequence for e in playlist.entries], [100, 101, 102])
        self.assertEqual(playlist.current_media_sequence, 103)
        self.assertEqual(playlist.target_duration_sec, 6)

    def test_segment_fields(self):
        playlist = parse(VARIANT_URL, VARIANT_PLAYLIST)
        first, second, third = playlist.entries

        self.assertAlmostEqual(first.duration_sec, 6.006)
        self.assertEqual(first.extra_info, "")
        self.assertEqual(second.extra_info, "titulo, con coma")
        self.assertEqual(third.duration_sec, 6.0)
        self.assertEqual(first.url, "https://host/path/segment100.ts")

    def test_without_media_sequence_starts_at_zero(self):
        text = "#EXTM3U\n#EXTINF:4,\na.ts\n#EXTINF:4,\nb.ts\n"
        playlist = parse(VARIANT_URL, text)

        self.assertEqual([e.media_sequence for e in playlist.entries], [0, 1])
        self.assertEqual(playlist.current_media_sequence, 2)

    def test_relative_reference_resolution(self):
        text = "#EXTM3U\n#EXTINF:4,\nsegment1.ts\n"
        playlist = parse(VARIANT_URL, text)
        self.assertEqual(playlist.entries[0].url, "https://host/path/segment1.ts")

    def test_parent_and_query_references(self):
        text = "#EXTM3U\n#EXTINF:4,\n../other/seg.ts\n#EXTINF:4,\nseg2.ts?token=abc\n"
        playlist = parse("https://host/path/live.m3u8?session=1", text)

        self.assertEqual(playlist.entries[0].url, "https://host/other/seg.ts")
        self.assertEqual(playlist.entries[1].url, "https://host/path/seg2.ts?token=abc")

    def test_absolute_reference_is_kept_verbatim(self):
        text = "#EXTM3U\n#EXTINF:4,\nhttp://other-host/a/b.ts\n"
        playlist = parse(VARIANT_URL, text)
        self.assertEqual(playlist.entries[0].url, "http://other-host/a/b.ts")

    def test_crlf_line_endings(self):
        text = VARIANT_PLAYLIST.replace("\n", "\r\n")
        playlist = parse(VARIANT_URL, text)

        self.assertEqual(len(playlist.entries), 3)
        self.assertEqual(playlist.entries[0].url, "https://host/path/segment100.ts")

    def test_unknown_tags_and_comments_are_ignored(self):
        text = (
            "#EXTM3U\n"
            "#EXT-X-PLAYLIST-TYPE:EVENT\n"
            "#EXT-X-KEY:METHOD=NONE\n"
            "## nota\n"
            "#EXTINF:2,\n"
            "a.ts\n"
        )
        playlist = parse(VARIANT_URL, text)
        self.assertEqual(len(playlist.entries), 1)

    def test_trailing_tag_without_reference_is_dropped(self):
        text = "#EXTM3U\n#EXTINF:2,\na.ts\n#EXTINF:2,\n"
        playlist = parse(VARIANT_URL, text)

        self.assertEqual(len(playlist.entries), 1)
        self.assertEqual(playlist.current_media_sequence, 1)

    def test_reference_without_tag(self):
        """Una referencia suelta se asigna al tipo vigente y consume secuencia."""
        text = "#EXTM3U\n#EXT-X-MEDIA-SEQUENCE:7\nloose.ts\n"
        playlist = parse(VARIANT_URL, text)

        self.assertEqual(playlist.entries[0].media_sequence, 7)
        self.assertEqual(playlist.entries[0].duration_sec, 0.0)


class TestParseErrors(unittest.TestCase):

    def test_missing_header_fails(self):
        """Sin #EXTM3U falla aunque el resto sea correcto."""
        text = VARIANT_PLAYLIST.replace("#EXTM3U\n", "")
        with self.assertRaises(NotExtendedM3UError) as ctx:
            parse(VARIANT_URL, text)
        self.assertIsNone(ctx.exception.line)

    def test_empty_text_fails(self):
        with self.assertRaises(NotExtendedM3UError):
            parse(VARIANT_URL, "")

    def test_non_numeric_duration_has_line_number(self):
        text = "#EXTM3U\n#EXT-X-TARGETDURATION:4\n#EXTINF:abc,\nseg.ts\n"
        with self.assertRaises(InvalidNumberError) as ctx:
            parse(VARIANT_URL, text)

        self.assertEqual(ctx.exception.line, 3)
        self.assertTrue(str(ctx.exception).startswith("line 3:"))

    def test_negative_duration_fails(self):
        with self.assertRaises(InvalidNumberError):
            parse(VARIANT_URL, "#EXTM3U\n#EXTINF:-1,\nseg.ts\n")

    def test_malformed_target_duration(self):
        with self.assertRaises(MalformedTagError) as ctx:
            parse(VARIANT_URL, "#EXTM3U\n#EXT-X-TARGETDURATION\n")
        self.assertEqual(ctx.exception.line, 2)

    def test_non_numeric_target_duration(self):
        with self.assertRaises(InvalidNumberError):
            parse(VARIANT_URL, "#EXTM3U\n#EXT-X-TARGETDURATION:6.5\n")

    def test_negative_media_sequence(self):
        with self.assertRaises(InvalidNumberError):
            parse(VARIANT_URL, "#EXTM3U\n#EXT-X-MEDIA-SEQUENCE:-1\n")

    def test_malformed_extinf(self):
        with self.assertRaises(MalformedTagError):
            parse(VARIANT_URL, "#EXTM3U\n#EXTINF\nseg.ts\n")

    def test_media_sequence_cannot_move_backwards(self):
        text = (
            "#EXTM3U\n"
            "#EXT-X-MEDIA-SEQUENCE:10\n"
            "#EXTINF:2,\n"
            "a.ts\n"
            "#EXT-X-MEDIA-SEQUENCE:3\n"
        )
        with self.assertRaises(PlaylistParseError) as ctx:
            parse(VARIANT_URL, text)
        self.assertEqual(ctx.exception.line, 5)

    def test_unjoinable_reference(self):
        text = "#EXTM3U\n#EXTINF:2,\n//[broken/seg.ts\n"
        with self.assertRaises(URLJoinError) as ctx:
            parse(VARIANT_URL, text)
        self.assertEqual(ctx.exception.line, 3)

    def test_relative_playlist_url_fails(self):
        with self.assertRaises(URLJoinError):
            parse("live.m3u8", "#EXTM3U\n")

    def test_errors_share_a_base_class(self):
        with self.assertRaises(PlaylistParseError):
            parse(VARIANT_URL, "#EXTM3U\n#EXTINF:x,\nseg.ts\n")


class TestMixedPlaylist(unittest.TestCase):
    """
    Una playlist con tags de master y de variante: gana el último tipo de tag
    encontrado y las entradas de ambos tipos quedan mezcladas en orden.
    """

    def test_variant_tag_last_wins(self):
        text = (
            "#EXTM3U\n"
            "#EXT-X-STREAM-INF:BANDWIDTH=1000\n"
            "low.m3u8\n"
            "#EXTINF:2,\n"
            "seg.ts\n"
        )
        playlist = parse(VARIANT_URL, text)

        self.assertEqual(playlist.kind, PlaylistKind.VARIANT)
        self.assertEqual(
            [e.kind for e in playlist.entries],
            [PlaylistKind.MASTER, PlaylistKind.VARIANT],
        )
        self.assertEqual(len(playlist.segments), 1)
        self.assertEqual(playlist.segments[0].media_sequence, 0)

    def test_master_tag_last_wins(self):
        text = (
            "#EXTM3U\n"
            "#EXTINF:2,\n"
            "seg.ts\n"
            "#EXT-X-STREAM-INF:BANDWIDTH=1000\n"
            "low.m3u8\n"
        )
        playlist = parse(VARIANT_URL, text)

        self.assertEqual(playlist.kind, PlaylistKind.MASTER)
        self.assertEqual(len(playlist.entries), 2)
        self.assertEqual(playlist.variants[0].url, "https://host/path/low.m3u8")


class TestHelpers(unittest.TestCase):

    def test_base_directory(self):
        self.assertEqual(base_directory(VARIANT_URL), "https://host/path/")
        self.assertEqual(base_directory("https://host"), "https://host/")
        self.assertEqual(
            base_directory("http://host:8080/a/b/c.m3u8?x=1"), "http://host:8080/a/b/"
        )

    def test_split_attribute_list_respects_quotes(self):
        self.assertEqual(
            split_attribute_list('BANDWIDTH=1,CODECS="a,b",X=2'),
            ["BANDWIDTH=1", 'CODECS="a,b"', "X=2"],
        )
        self.assertEqual(split_attribute_list("A=1,,B=2"), ["A=1", "", "B=2"])


if __name__ == "__main__":
    unittest.main()
