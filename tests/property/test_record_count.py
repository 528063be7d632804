from hypothesis import given, strategies as st

from cch_core.cleanup import apply_plan
from cch_core.models import BlobFinding, BlobType, RedactionPlan, SafetyLevel
from cch_core.transcript import serialize
from cch_core.transcript.stream import build_record


def _plan(indices):
    return RedactionPlan(
        findings=tuple(
            BlobFinding(
                record_index=index,
                blob_type=BlobType.LARGE_TEXT,
                blob_size_bytes=1,
                blob_count=1,
                description="",
                safety_level=SafetyLevel.CAUTION,
            )
            for index in indices
        )
    )


_contents = st.lists(st.text(max_size=40), min_size=0, max_size=12)


@given(_contents, st.data())
def test_removed_records_match_distinct_plan_indices(contents, data):
    records = [build_record({"role": "user", "content": content}, index) for index, content in enumerate(contents)]
    indices = data.draw(st.lists(st.sampled_from(range(len(records))), max_size=20)) if records else []
    kept, removed, _ = apply_plan(records, _plan(indices), sanitize=False)
    assert len(kept) == len(records) - len(set(indices))
    assert removed == len(set(indices))
    assert [record.index for record in kept] == sorted(record.index for record in kept)


@given(_contents, st.data())
def test_sanitize_keeps_count_and_never_grows(contents, data):
    records = [build_record({"role": "user", "content": content}, index) for index, content in enumerate(contents)]
    indices = data.draw(st.lists(st.sampled_from(range(len(records))), max_size=20)) if records else []
    kept, _, sanitized = apply_plan(records, _plan(indices), sanitize=True)
    assert len(kept) == len(records)
    assert sanitized == len(set(indices))
    assert len(serialize(kept)) <= len(serialize(records))
