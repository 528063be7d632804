import json
import os
import stat
from datetime import datetime, timedelta, timezone

import pytest

from cch_core.cleanup import BlobPolicy, apply_plan, clean_transcript, create_backup, execute, iter_clean, plan
from cch_core.cleanup.sanitize import sanitize_record
from cch_core.errors import BackupError
from cch_core.transcript import detect_all, parse
from cch_core.transcript.stream import build_record
from cch_core.utils.fs import atomic_write_bytes

NOW = datetime(2024, 6, 1, tzinfo=timezone.utc)
OLD = (NOW - timedelta(days=10)).isoformat()
PNG_URI = "data:image/png;base64," + "A" * 266_667


def _write_transcript(path, raws):
    path.write_text("".join(json.dumps(raw) + "\n" for raw in raws), encoding="utf-8")
    return path


def _session(tmp_path):
    return _write_transcript(
        tmp_path / "session.jsonl",
        [
            {"type": "user", "timestamp": OLD, "message": {"role": "user", "content": "hello"}},
            {
                "type": "user",
                "timestamp": OLD,
                "message": {"role": "user", "content": [{"type": "text", "text": "see " + PNG_URI}]},
            },
            {"type": "assistant", "timestamp": OLD, "message": {"role": "assistant", "content": "done"}},
        ],
    )


def test_old_png_record_is_removed(tmp_path):
    path = _session(tmp_path)
    original = path.read_bytes()
    result = clean_transcript(path, BlobPolicy(dry_run=False), now=NOW)
    assert result.success, result.error
    assert result.records_removed == 1
    assert result.records_sanitized == 0
    lines = path.read_text(encoding="utf-8").splitlines()
    assert [json.loads(line)["message"]["content"] for line in lines] == ["hello", "done"]
    assert result.new_size_bytes == path.stat().st_size
    assert result.new_size_bytes < result.original_size_bytes
    assert result.backup_path is not None
    assert result.backup_path.parent == tmp_path / ".backups"
    assert result.backup_path.read_bytes() == original


def test_untouched_lines_keep_their_bytes(tmp_path):
    path = _session(tmp_path)
    before = path.read_text(encoding="utf-8").splitlines()
    clean_transcript(path, BlobPolicy(dry_run=False), now=NOW)
    after = path.read_text(encoding="utf-8").splitlines()
    assert after == [before[0], before[2]]


def test_sanitize_keeps_record_and_inserts_placeholder(tmp_path):
    path = _session(tmp_path)
    result = clean_transcript(path, BlobPolicy(dry_run=False, sanitize=True), now=NOW)
    assert result.success, result.error
    assert result.records_sanitized == 1
    assert result.records_removed == 0
    records = [json.loads(line) for line in path.read_text(encoding="utf-8").splitlines()]
    assert len(records) == 3
    text = records[1]["message"]["content"][0]["text"]
    assert text == "see [IMAGE REMOVED: PNG, ~195.3 KB]"
    assert records[1]["timestamp"] == OLD


def test_dry_run_touches_nothing(tmp_path):
    path = _session(tmp_path)
    original = path.read_bytes()
    result = clean_transcript(path, BlobPolicy(), now=NOW)
    assert result.success
    assert result.dry_run
    assert result.records_removed == 1
    assert result.new_size_bytes == result.original_size_bytes - result.applied[0].blob_size_bytes
    assert path.read_bytes() == original
    assert not (tmp_path / ".backups").exists()


def test_dry_run_with_sanitize_reports_sanitized_records(tmp_path):
    path = _session(tmp_path)
    result = clean_transcript(path, BlobPolicy(sanitize=True), now=NOW)
    assert result.records_sanitized == 1
    assert result.records_removed == 0


def test_execute_refuses_without_backup(tmp_path):
    path = _session(tmp_path)
    original = path.read_bytes()
    transcript = parse(path)
    redaction_plan = plan(detect_all(transcript.records, now=NOW), BlobPolicy())
    result = execute(path, transcript, redaction_plan, BlobPolicy(dry_run=False))
    assert not result.success
    assert result.error
    assert path.read_bytes() == original


def test_failed_backup_aborts_file(tmp_path):
    path = _session(tmp_path)
    original = path.read_bytes()

    def broken_backup(_path):
        raise BackupError("disk full")

    result = clean_transcript(path, BlobPolicy(dry_run=False), backup=broken_backup, now=NOW)
    assert not result.success
    assert "disk full" in result.error
    assert path.read_bytes() == original


def test_empty_plan_writes_nothing(tmp_path):
    path = _write_transcript(tmp_path / "plain.jsonl", [{"role": "user", "content": "hi"}])
    original = path.read_bytes()
    result = clean_transcript(path, BlobPolicy(dry_run=False), now=NOW)
    assert result.success
    assert result.saved_bytes == 0
    assert result.backup_path is None
    assert path.read_bytes() == original
    assert not (tmp_path / ".backups").exists()


def test_missing_file_is_reported_not_raised(tmp_path):
    result = clean_transcript(tmp_path / "gone.jsonl", BlobPolicy(dry_run=False), now=NOW)
    assert not result.success
    assert result.error


def test_iter_clean_yields_per_file(tmp_path):
    first = _session(tmp_path)
    second = tmp_path / "missing.jsonl"
    results = iter_clean([first, second], BlobPolicy(), now=NOW)
    assert next(results).success
    assert not next(results).success
    with pytest.raises(StopIteration):
        next(results)


def test_apply_plan_preserves_order_and_count(tmp_path):
    transcript = parse(_session(tmp_path))
    redaction_plan = plan(detect_all(transcript.records, now=NOW), BlobPolicy())
    kept, removed, sanitized = apply_plan(transcript.records, redaction_plan, sanitize=False)
    assert [record.index for record in kept] == [0, 2]
    assert (removed, sanitized) == (1, 0)
    kept, removed, sanitized = apply_plan(transcript.records, redaction_plan, sanitize=True)
    assert [record.index for record in kept] == [0, 1, 2]
    assert (removed, sanitized) == (0, 1)


def test_sanitize_replaces_file_and_text_payloads():
    raw = {
        "role": "assistant",
        "content": [{"type": "text", "text": "z" * (2 * 1024 * 1024)}, {"type": "text", "text": "tail"}],
        "toolUseResult": {"file": {"filePath": "/tmp/q3.pdf", "base64": "Q" * 200_000}},
    }
    record = build_record(raw, 4)
    findings = detect_all([record], now=NOW)
    cleaned = sanitize_record(record, findings)
    assert cleaned.index == 4
    assert cleaned.size_bytes < record.size_bytes
    assert cleaned.raw["toolUseResult"]["file"]["base64"] == "[BASE64 FILE REMOVED: /tmp/q3.pdf, ~146.5 KB]"
    assert cleaned.raw["content"][0]["text"] == "[LARGE TEXT REMOVED: 2.0 MB]"
    assert cleaned.raw["content"][1]["text"] == "tail"
    assert record.raw["content"][1]["text"] == "tail"
    assert len(record.raw["toolUseResult"]["file"]["base64"]) == 200_000


def test_create_backup_copies_bytes(tmp_path):
    path = _session(tmp_path)
    backup = create_backup(path, now=NOW)
    assert backup == tmp_path / ".backups" / "20240601T000000000000Z-session.jsonl"
    assert backup.read_bytes() == path.read_bytes()


def test_create_backup_of_missing_file_raises(tmp_path):
    with pytest.raises(BackupError):
        create_backup(tmp_path / "gone.jsonl")


def test_real_run_keeps_file_permissions(tmp_path):
    path = _session(tmp_path)
    os.chmod(path, 0o644)
    result = clean_transcript(path, BlobPolicy(dry_run=False), now=NOW)
    assert result.success, result.error
    assert result.records_removed == 1
    assert stat.S_IMODE(path.stat().st_mode) == 0o644


def test_atomic_write_copies_existing_mode(tmp_path):
    path = tmp_path / "notes.jsonl"
    path.write_bytes(b"old\n")
    os.chmod(path, 0o640)
    assert atomic_write_bytes(path, b"new\n") == 4
    assert path.read_bytes() == b"new\n"
    assert stat.S_IMODE(path.stat().st_mode) == 0o640
