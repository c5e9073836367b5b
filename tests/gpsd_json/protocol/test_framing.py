"""Tests for the newline frame decoder."""

import pytest

from gpsd_json.protocol.framing import END_OF_STREAM, NEED_DATA, FrameDecoder
from gpsd_json.protocol.responses import Tpv, decode_message

TPV = b'{"class":"TPV","device":"/dev/ttyUSB0","mode":3,"lat":35.0,"lon":139.0}\n'


class TestSingleFeed:
    """Frames delivered in one chunk."""

    def test_one_frame(self):
        """A complete line is returned with its newline."""
        decoder = FrameDecoder()
        decoder.feed(TPV)
        assert decoder.next_frame() == TPV
        assert decoder.next_frame() is NEED_DATA

    def test_multiple_frames_in_one_chunk(self):
        """Frames come out one per call, in stream order."""
        decoder = FrameDecoder()
        decoder.feed(b"a\nbb\nccc\n")
        assert decoder.next_frame() == b"a\n"
        assert decoder.next_frame() == b"bb\n"
        assert decoder.next_frame() == b"ccc\n"
        assert decoder.next_frame() is NEED_DATA

    def test_boundary_ignores_json_structure(self):
        """The first newline ends the frame even if the JSON is incomplete."""
        decoder = FrameDecoder()
        decoder.feed(b'{"class":\n"TPV"}\n')
        assert decoder.next_frame() == b'{"class":\n'
        assert decoder.next_frame() == b'"TPV"}\n'


class TestChunkedFeed:
    """Frames split across several feeds."""

    @pytest.mark.parametrize("split", [0, 1, 10, len(TPV) // 2, len(TPV) - 2, len(TPV) - 1, len(TPV)])
    def test_split_point_does_not_matter(self, split: int):
        """Delivering a frame in two halves yields the same message as one feed."""
        decoder = FrameDecoder()
        decoder.feed(TPV[:split])
        first = decoder.next_frame()
        if split < len(TPV):
            assert first is NEED_DATA
            decoder.feed(TPV[split:])
            first = decoder.next_frame()
        assert first == TPV
        assert decoder_message(first) == decoder_message(TPV)

    def test_byte_by_byte(self):
        """Feeding one byte at a time still yields exactly one frame."""
        decoder = FrameDecoder()
        frames = []
        for i in range(len(TPV)):
            decoder.feed(TPV[i : i + 1])
            result = decoder.next_frame()
            if isinstance(result, bytes):
                frames.append(result)
        assert frames == [TPV]

    def test_trailing_bytes_kept_for_next_frame(self):
        """Bytes after a newline start the next frame."""
        decoder = FrameDecoder()
        decoder.feed(b"one\ntw")
        assert decoder.next_frame() == b"one\n"
        assert decoder.next_frame() is NEED_DATA
        assert decoder.pending == 2
        decoder.feed(b"o\n")
        assert decoder.next_frame() == b"two\n"


class TestReentry:
    """Resuming after NEED_DATA."""

    def test_empty_feed_is_noop(self):
        """Feeding zero bytes neither consumes buffered bytes nor yields a frame."""
        decoder = FrameDecoder()
        decoder.feed(b'{"class":"TP')
        assert decoder.next_frame() is NEED_DATA
        for _ in range(3):
            decoder.feed(b"")
            assert decoder.next_frame() is NEED_DATA
        assert decoder.pending == len(b'{"class":"TP')
        decoder.feed(b'V"}\n')
        assert decoder.next_frame() == b'{"class":"TPV"}\n'

    def test_repeated_calls_without_data(self):
        """Asking again without new data gives NEED_DATA and keeps the buffer."""
        decoder = FrameDecoder()
        decoder.feed(b"partial")
        assert decoder.next_frame() is NEED_DATA
        assert decoder.next_frame() is NEED_DATA
        assert decoder.pending == len(b"partial")


class TestEndOfStream:
    """End-of-stream handling."""

    def test_eof_on_empty_buffer(self):
        """EOF with nothing buffered ends the stream."""
        decoder = FrameDecoder()
        decoder.feed_eof()
        assert decoder.next_frame() is END_OF_STREAM

    def test_buffered_frames_drain_before_eof(self):
        """Complete frames already buffered are still returned after EOF."""
        decoder = FrameDecoder()
        decoder.feed(b"a\nb\n")
        decoder.feed_eof()
        assert decoder.next_frame() == b"a\n"
        assert decoder.next_frame() == b"b\n"
        assert decoder.next_frame() is END_OF_STREAM

    def test_unterminated_trailing_frame_discarded(self):
        """A fragment without newline at EOF is dropped, not reported as an error."""
        decoder = FrameDecoder()
        decoder.feed(b'a\n{"class":"TPV"')
        decoder.feed_eof()
        assert decoder.next_frame() == b"a\n"
        assert decoder.next_frame() is END_OF_STREAM
        assert decoder.pending == 0
        assert decoder.next_frame() is END_OF_STREAM

    def test_feed_after_eof_rejected(self):
        """Data after EOF is a caller bug."""
        decoder = FrameDecoder()
        decoder.feed_eof()
        with pytest.raises(RuntimeError):
            decoder.feed(b"x\n")


def decoder_message(frame: bytes) -> Tpv:
    """Decode a TPV frame for comparison."""
    message = decode_message(frame)
    assert isinstance(message, Tpv)
    return message
