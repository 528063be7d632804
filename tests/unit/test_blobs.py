from datetime import datetime, timedelta, timezone

from cch_core.models import BlobType, SafetyLevel
from cch_core.transcript import analyze, classify_safety, detect, find_large_transcripts, parse_lines
from cch_core.transcript.stream import build_record

NOW = datetime(2024, 6, 1, tzinfo=timezone.utc)
PNG_URI = "data:image/png;base64," + "A" * 266_667


def _stamp(days_ago):
    return (NOW - timedelta(days=days_ago)).isoformat()


def test_large_png_in_old_record_is_safe_image_finding():
    raw = {
        "timestamp": _stamp(10),
        "message": {"role": "user", "content": [{"type": "text", "text": PNG_URI}]},
    }
    findings = detect(build_record(raw, 0), now=NOW)
    assert len(findings) == 1
    finding = findings[0]
    assert finding.blob_type == BlobType.IMAGE
    assert finding.safety_level == SafetyLevel.SAFE
    assert finding.blob_count == 1
    assert finding.blob_size_bytes == (22 + 266_667) * 3 // 4
    assert finding.subtypes == ("PNG",)
    assert finding.description.startswith("1 image(s) [PNG] (~195.3 KB)")


def test_recent_or_undated_records_need_caution():
    recent = build_record({"timestamp": _stamp(1), "content": PNG_URI}, 0)
    undated = build_record({"content": PNG_URI}, 1)
    assert detect(recent, now=NOW)[0].safety_level == SafetyLevel.CAUTION
    assert detect(undated, now=NOW)[0].safety_level == SafetyLevel.CAUTION


def test_images_are_summed_across_the_record():
    small = "data:image/jpeg;base64," + "B" * 80_000
    raw = {"content": [{"type": "text", "text": small}, {"type": "text", "text": small}]}
    findings = detect(build_record(raw, 0), now=NOW)
    assert [finding.blob_type for finding in findings] == [BlobType.IMAGE]
    assert findings[0].blob_count == 2
    assert findings[0].largest_item_bytes < findings[0].blob_size_bytes


def test_small_image_below_threshold_is_ignored():
    raw = {"content": "data:image/png;base64," + "A" * 1000}
    assert detect(build_record(raw, 0), now=NOW) == []


def test_base64_image_content_block_detected():
    block = {"type": "image", "source": {"type": "base64", "media_type": "image/webp", "data": "A" * 200_000}}
    raw = {"message": {"role": "user", "content": [block]}}
    findings = detect(build_record(raw, 0), now=NOW)
    assert findings[0].blob_type == BlobType.IMAGE
    assert findings[0].subtypes == ("WEBP",)
    assert findings[0].blob_size_bytes == 150_000


def test_tool_result_file_is_data_dump():
    raw = {
        "type": "user",
        "toolUseResult": {"file": {"filePath": "/tmp/reports/q3.pdf", "base64": "Q" * 200_000}},
    }
    findings = detect(build_record(raw, 0), now=NOW)
    assert [finding.blob_type for finding in findings] == [BlobType.DATA_DUMP]
    assert findings[0].description == "Base64 file [q3.pdf] (~146.5 KB)"


def test_large_text_output_detected():
    raw = {"role": "assistant", "content": "x" * (1024 * 1024 + 10)}
    findings = detect(build_record(raw, 0), now=NOW)
    assert [finding.blob_type for finding in findings] == [BlobType.LARGE_TEXT]
    assert findings[0].description == "Large text output (1.0 MB)"


def test_findings_are_ordered_image_dump_text():
    raw = {
        "content": [{"type": "text", "text": "y" * (1024 * 1024)}, {"type": "text", "text": PNG_URI}],
        "toolUseResult": {"file": {"base64": "Q" * 200_000}},
    }
    types = [finding.blob_type for finding in detect(build_record(raw, 0), now=NOW)]
    assert types == [BlobType.IMAGE, BlobType.DATA_DUMP, BlobType.LARGE_TEXT]


def test_analyze_summarizes_transcript():
    lines = [
        '{"role": "user", "content": "hi"}',
        '{"role": "user", "content": "' + PNG_URI + '"}',
        "garbage",
    ]
    transcript = parse_lines("\n".join(lines) + "\n")
    analysis = analyze(transcript, now=NOW)
    assert analysis.total_records == 2
    assert analysis.skipped_lines == 1
    assert len(analysis.by_type(BlobType.IMAGE)) == 1
    assert analysis.by_safety(SafetyLevel.SAFE) == []
    assert analysis.potential_savings_bytes == analysis.findings[0].blob_size_bytes
    assert 0 < analysis.blob_percentage <= 100


def test_find_large_transcripts(tmp_path):
    (tmp_path / "big.jsonl").write_bytes(b"x" * 2048)
    (tmp_path / "small.jsonl").write_bytes(b"x" * 10)
    (tmp_path / "big.txt").write_bytes(b"x" * 4096)
    assert find_large_transcripts(tmp_path, threshold_bytes=1024) == [tmp_path / "big.jsonl"]
    assert find_large_transcripts(tmp_path / "missing", threshold_bytes=1024) == []


def test_naive_now_is_read_as_utc():
    record = build_record({"timestamp": _stamp(10), "content": PNG_URI}, 0)
    naive = NOW.replace(tzinfo=None)
    assert classify_safety(record, now=naive) == SafetyLevel.SAFE
    assert detect(record, now=naive)[0].safety_level == SafetyLevel.SAFE
