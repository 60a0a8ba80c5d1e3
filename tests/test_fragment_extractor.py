# tests/test_fragment_extractor.py
"""Unit tests for alertStream record framing."""

import sys
import os
sys.path.insert(0, os.path.join(os.path.dirname(__file__), ".."))

from nvr_bridge.services.fragment_extractor import StreamBuffer, extract_fragments
from tests.helpers import event_xml, multipart


def stream_bytes(*records: str) -> bytes:
    return "".join(multipart(r) for r in records).encode("utf-8")


class TestExtractFragments:
    def test_single_record(self):
        record = event_xml()
        fragments, remainder = extract_fragments(record)
        assert fragments == [record]
        assert remainder == ""

    def test_multiple_records_in_one_chunk(self):
        a, b = event_xml(channel="1"), event_xml(channel="2")
        fragments, _ = extract_fragments(multipart(a) + multipart(b))
        assert fragments == [a, b]

    def test_partial_record_is_kept(self):
        record = event_xml()
        head = multipart(record)[:-40]
        fragments, remainder = extract_fragments(head)
        assert fragments == []
        assert remainder.startswith("<EventNotificationAlert")

    def test_partial_open_tag_is_kept(self):
        fragments, remainder = extract_fragments("\r\n--boundary\r\n\r\n<EventNotification")
        assert fragments == []
        assert remainder == "<EventNotification"

    def test_noise_is_discarded(self):
        fragments, remainder = extract_fragments("--boundary\r\nContent-Length: 12\r\n\r\n   ")
        assert fragments == []
        assert remainder == ""

    def test_unrelated_tag_is_not_kept(self):
        _, remainder = extract_fragments("<heartbeat/> a < b")
        assert remainder == ""

    def test_similar_root_name_is_not_a_record(self):
        text = "<EventNotificationAlertList><x/></EventNotificationAlertList>"
        fragments, _ = extract_fragments(text)
        assert fragments == []


class TestStreamBuffer:
    def test_open_tag_split_across_chunks(self):
        """Chunk 1 ends mid-tag, chunk 2 completes the record: exactly one fragment."""
        record = event_xml()
        buffer = StreamBuffer()
        first = buffer.feed(b"--boundary\r\n\r\n<EventNotification")
        second = buffer.feed(record[len("<EventNotification"):].encode())
        assert first == []
        assert second == [record]
        assert buffer.size == 0

    def test_chunk_boundary_invariance(self):
        records = [event_xml(channel="1"), event_xml("linedetection", channel="2"),
                   event_xml("videoloss", "inactive", channel="3").replace("Motion alarm", "Perte vidéo")]
        data = stream_bytes(*records)

        whole = StreamBuffer().feed(data)
        assert whole == records

        # every two-way split, including inside the multi-byte "é"
        for i in range(len(data) + 1):
            buffer = StreamBuffer()
            assert buffer.feed(data[:i]) + buffer.feed(data[i:]) == records

    def test_byte_by_byte(self):
        records = [event_xml(channel=str(n)) for n in range(1, 5)]
        data = stream_bytes(*records)
        buffer = StreamBuffer()
        fragments = []
        for i in range(len(data)):
            fragments.extend(buffer.feed(data[i:i + 1]))
        assert fragments == records

    def test_buffer_does_not_grow_with_noise(self):
        buffer = StreamBuffer()
        for _ in range(100):
            buffer.feed(b"--boundary\r\n\r\n    \r\n")
        assert buffer.size == 0

    def test_clear(self):
        buffer = StreamBuffer()
        buffer.feed(b"<EventNotificationAlert><eventType>")
        buffer.clear()
        assert buffer.size == 0
