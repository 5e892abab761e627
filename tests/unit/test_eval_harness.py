from __future__ import annotations

from tools.eval_harness.quality_gate import check_gate
from tools.eval_harness.run_eval import _chunk, _compute_metrics


def _ok(name, status, doc_type, identity, conf, **validation):
    val = {
        "has_required_fields": True,
        "is_valid_name": True,
        "is_not_expired": True,
        "identity_found": identity,
        "confidence_score": conf,
    }
    val.update(validation)
    return {
        "filename": name,
        "ok": True,
        "result": {
            "status": status,
            "fields": {"document_type": doc_type, "extracted_name": "John Doe"},
            "validation": val,
        },
    }


def test_compute_metrics():
    response = {
        "results": [
            _ok("a.png", "Complete", "Passport", True, 1.0),
            _ok("b.png", "Rejected", "Driver License", True, 0.8, is_not_expired=False),
            _ok("c.png", "Rejected", "Unknown", False, 0.0, has_required_fields=False, is_valid_name=False),
            {"filename": "d.png", "ok": False, "error": "Unsupported file type."},
        ]
    }
    metrics, rows = _compute_metrics(response)

    assert metrics["total"] == 4
    assert metrics["ok_count"] == 3
    assert metrics["complete_count"] == 1
    assert metrics["complete_rate"] == 0.25
    assert metrics["identity_rate"] == 0.5
    assert abs(metrics["mean_confidence"] - 0.6) < 1e-9
    assert metrics["by_status"] == {"Rejected": 2, "Complete": 1, "Failed": 1}
    assert metrics["by_reason"]["rejected:expired"] == 1
    assert metrics["by_reason"]["rejected:missing_fields"] == 1
    assert metrics["by_reason"]["transport:Unsupported file type."] == 1
    assert [r["filename"] for r in rows] == ["a.png", "b.png", "c.png", "d.png"]


def test_compute_metrics_empty():
    metrics, rows = _compute_metrics({"results": "garbage"})
    assert metrics["total"] == 0
    assert metrics["complete_rate"] == 0.0
    assert rows == []


def test_chunk():
    assert _chunk([1, 2, 3, 4, 5], 2) == [[1, 2], [3, 4], [5]]
    assert _chunk([1, 2], 0) == [[1, 2]]


def test_quality_gate():
    kw = dict(min_ok_rate=0.99, min_complete_rate=0.8, min_mean_confidence=0.7, allow_complete_drop=0.005)
    good = {"ok_rate": 1.0, "complete_rate": 0.9, "mean_confidence": 0.85}
    assert check_gate(good, {"complete_rate": 0.9}, **kw) == []

    failures = check_gate(good, {"complete_rate": 0.95}, **kw)
    assert len(failures) == 1 and "dropped" in failures[0]

    bad = {"ok_rate": 0.5, "complete_rate": 0.1, "mean_confidence": 0.2}
    assert len(check_gate(bad, {}, **kw)) == 3
