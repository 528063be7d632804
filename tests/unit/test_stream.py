from datetime import datetime, timezone

import pytest

from cch_core.errors import TranscriptError
from cch_core.transcript import parse, parse_lines, serialize
from cch_core.transcript.stream import build_record, parse_timestamp


def test_round_trip_is_byte_identical():
    data = (
        '{"type": "user", "message": {"role": "user", "content": "hi"}}\n'
        '{"type":"assistant","message":{"role":"assistant","content":[{"type":"text","text":"héllo"}]}}\n'
    )
    transcript = parse_lines(data)
    assert len(transcript.records) == 2
    assert serialize(transcript.records) == data.encode("utf-8")


def test_malformed_lines_are_skipped_and_counted():
    data = '{"role": "user"}\nnot json\n[1, 2]\n\n{"role": "assistant"}\n'
    transcript = parse_lines(data)
    assert [record.role for record in transcript.records] == ["user", "assistant"]
    assert [record.index for record in transcript.records] == [0, 1]
    assert transcript.skipped_lines == 2
    assert len(transcript.warnings) == 2
    assert "line 2" in transcript.warnings[0]


def test_record_fields_are_extracted():
    transcript = parse_lines(
        '{"uuid": "abc", "timestamp": "2024-05-01T12:00:00Z", "message": {"role": "assistant", "content": "x"}}'
    )
    record = transcript.records[0]
    assert record.role == "assistant"
    assert record.id == "abc"
    assert record.timestamp == datetime(2024, 5, 1, 12, tzinfo=timezone.utc)
    assert record.size_bytes == len(record.line.encode("utf-8"))


def test_missing_role_is_unknown():
    record = build_record({"content": "x"}, 0)
    assert record.role == "unknown"
    assert record.timestamp is None
    assert record.line is None


@pytest.mark.parametrize(
    "value, expected",
    [
        ("2024-05-01T12:00:00Z", datetime(2024, 5, 1, 12, tzinfo=timezone.utc)),
        ("2024-05-01T12:00:00", datetime(2024, 5, 1, 12, tzinfo=timezone.utc)),
        (1714564800000, datetime(2024, 5, 1, 12, tzinfo=timezone.utc)),
        ("yesterday", None),
        (True, None),
        (None, None),
    ],
)
def test_parse_timestamp(value, expected):
    assert parse_timestamp(value) == expected


def test_rebuilt_records_are_reencoded():
    record = build_record({"role": "user", "content": "é"}, 0)
    assert serialize([record]) == '{"role":"user","content":"é"}\n'.encode("utf-8")


def test_empty_transcript_serializes_to_nothing():
    assert serialize([]) == b""


def test_parse_reads_file(tmp_path):
    path = tmp_path / "session.jsonl"
    path.write_text('{"role": "user"}\n', encoding="utf-8")
    transcript = parse(path)
    assert transcript.name == "session.jsonl"
    assert transcript.size_bytes == path.stat().st_size


def test_parse_rejects_invalid_utf8(tmp_path):
    path = tmp_path / "broken.jsonl"
    path.write_bytes(b'{"role": "\xff"}\n')
    with pytest.raises(TranscriptError):
        parse(path)


def test_parse_missing_file_raises_os_error(tmp_path):
    with pytest.raises(FileNotFoundError):
        parse(tmp_path / "missing.jsonl")
