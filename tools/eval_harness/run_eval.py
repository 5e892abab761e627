#!/usr/bin/env python3
# tools/eval_harness/run_eval.py
import argparse
import csv
import hashlib
import json
import platform
import subprocess
import sys
import time
from dataclasses import dataclass
from datetime import datetime, timezone
from pathlib import Path
from typing import Any, Dict, List, Optional, Tuple

import requests
from rich.console import Console
from rich.table import Table

console = Console()

DOC_EXTS = (".pdf", ".png", ".jpg", ".jpeg", ".gif", ".bmp", ".webp")


# --- Config dataclass ---
@dataclass(frozen=True)
class EvalConfig:
    gateway_url: str
    endpoint: str
    test_dir: Path
    name: str
    timeout_s: int
    max_docs: Optional[int]
    batch_size: int
    batch_delay_s: float


# --- Helpers ---
def _utc_ts_compact() -> str:
    return datetime.now(timezone.utc).strftime("%Y%m%dT%H%M%SZ")


def _sha256_bytes(b: bytes) -> str:
    return hashlib.sha256(b).hexdigest()


def _git_sha() -> Optional[str]:
    try:
        out = subprocess.check_output(["git", "rev-parse", "HEAD"], stderr=subprocess.DEVNULL)
        return out.decode("utf-8").strip()
    except (OSError, subprocess.CalledProcessError):
        return None


def _iter_documents(test_dir: Path) -> List[Path]:
    return [p for p in sorted(test_dir.rglob("*")) if p.is_file() and p.suffix.lower() in DOC_EXTS]


def _chunk(xs: List[Any], batch_size: int) -> List[List[Any]]:
    if batch_size <= 0:
        return [xs]
    return [xs[i : i + batch_size] for i in range(0, len(xs), batch_size)]


def _post_verify_batch(docs: List[Path], url: str, timeout_s: int) -> Dict[str, Any]:
    files = []
    opened = []
    try:
        for p in docs:
            f = open(p, "rb")
            opened.append(f)
            files.append(("files", (p.name, f, "application/octet-stream")))
        r = requests.post(url, files=files, timeout=timeout_s)
        r.raise_for_status()
        return r.json()
    finally:
        for f in opened:
            f.close()


# --- Result parsing helpers ---
def _failure_reason(item: Dict[str, Any]) -> str:
    if not item.get("ok", False):
        return f"transport:{item.get('error', 'unknown')}"
    res = item.get("result") or {}
    if res.get("status") == "Complete":
        return "complete"
    val = res.get("validation") or {}
    if not val.get("has_required_fields", False):
        return "rejected:missing_fields"
    if not val.get("is_valid_name", False):
        return "rejected:invalid_name"
    if not val.get("is_not_expired", False):
        return "rejected:expired"
    return "rejected:other"


def _compute_metrics(response: Dict[str, Any]) -> Tuple[Dict[str, Any], List[Dict[str, Any]]]:
    items = response.get("results", [])
    if not isinstance(items, list):
        items = []

    total = 0
    ok_count = 0
    complete_count = 0
    identity_count = 0
    conf_sum = 0.0

    by_status: Dict[str, int] = {}
    by_doctype: Dict[str, int] = {}
    by_reason: Dict[str, int] = {}

    rows: List[Dict[str, Any]] = []

    for it in items:
        if not isinstance(it, dict):
            continue
        total += 1

        ok = bool(it.get("ok", False))
        ok_count += int(ok)
        res = (it.get("result") or {}) if ok else {}
        fields = res.get("fields") or {}
        val = res.get("validation") or {}

        status = res.get("status", "Failed") if ok else "Failed"
        by_status[status] = by_status.get(status, 0) + 1
        complete_count += int(status == "Complete")

        dt = fields.get("document_type") or "unknown"
        by_doctype[dt] = by_doctype.get(dt, 0) + 1

        reason = _failure_reason(it)
        by_reason[reason] = by_reason.get(reason, 0) + 1

        identity = bool(val.get("identity_found", False))
        identity_count += int(identity)
        conf = float(val.get("confidence_score", 0.0) or 0.0)
        conf_sum += conf

        rows.append(
            {
                "filename": it.get("filename"),
                "ok": ok,
                "status": status,
                "document_type": dt,
                "extracted_name": fields.get("extracted_name") or "",
                "identity_found": identity,
                "confidence": conf,
                "failure_reason": reason,
                "error": it.get("error", "") if not ok else "",
            }
        )

    metrics = {
        "total": total,
        "ok_count": ok_count,
        "ok_rate": (ok_count / total) if total else 0.0,
        "complete_count": complete_count,
        "complete_rate": (complete_count / total) if total else 0.0,
        "identity_rate": (identity_count / total) if total else 0.0,
        "mean_confidence": (conf_sum / ok_count) if ok_count else 0.0,
        "by_status": dict(sorted(by_status.items(), key=lambda kv: (-kv[1], kv[0]))),
        "by_doctype": dict(sorted(by_doctype.items(), key=lambda kv: (-kv[1], kv[0]))),
        "by_reason": dict(sorted(by_reason.items(), key=lambda kv: (-kv[1], kv[0]))),
    }
    return metrics, rows


def _write_artifacts(
    out_dir: Path,
    cfg: EvalConfig,
    docs: List[Path],
    response: Dict[str, Any],
    metrics: Dict[str, Any],
    rows: List[Dict[str, Any]],
    started_at_utc: str,
    duration_s: float,
) -> None:
    out_dir.mkdir(parents=True, exist_ok=True)

    inputs = []
    for p in docs:
        b = p.read_bytes()
        inputs.append({"path": str(p), "filename": p.name, "sha256": _sha256_bytes(b), "bytes": len(b)})

    metadata = {
        "started_at_utc": started_at_utc,
        "duration_s": duration_s,
        "name": cfg.name,
        "gateway_url": cfg.gateway_url,
        "endpoint": cfg.endpoint,
        "python": sys.version,
        "platform": platform.platform(),
        "git_sha": _git_sha(),
        "inputs": inputs,
    }

    (out_dir / "metadata.json").write_text(json.dumps(metadata, indent=2), encoding="utf-8")
    (out_dir / "results.json").write_text(json.dumps(response, indent=2), encoding="utf-8")
    (out_dir / "metrics.json").write_text(json.dumps(metrics, indent=2), encoding="utf-8")

    with (out_dir / "summary.csv").open("w", newline="", encoding="utf-8") as f:
        w = csv.DictWriter(
            f,
            fieldnames=[
                "filename", "ok", "status", "document_type", "extracted_name",
                "identity_found", "confidence", "failure_reason", "error",
            ],
        )
        w.writeheader()
        for r in rows:
            w.writerow(r)


def _print_summary(metrics: Dict[str, Any], out_dir: Path) -> None:
    table = Table(title="Verification eval")
    table.add_column("Metric")
    table.add_column("Value", justify="right")
    table.add_row("Documents", str(metrics["total"]))
    table.add_row("Transport OK", f"{metrics['ok_rate'] * 100:.1f}%")
    table.add_row("Complete", f"{metrics['complete_rate'] * 100:.1f}%")
    table.add_row("Identity found", f"{metrics['identity_rate'] * 100:.1f}%")
    table.add_row("Mean confidence", f"{metrics['mean_confidence']:.2f}")
    for reason, n in metrics["by_reason"].items():
        table.add_row(f"  {reason}", str(n))
    console.print(table)
    console.print(f"[bold blue]Artifacts: {out_dir}[/bold blue]")


# --- Runner ---
def _call_batches(cfg: EvalConfig, docs: List[Path]) -> List[Dict[str, Any]]:
    url = f"{cfg.gateway_url.rstrip('/')}{cfg.endpoint}"
    combined: List[Dict[str, Any]] = []

    for batch in _chunk(docs, cfg.batch_size):
        try:
            resp = _post_verify_batch(batch, url=url, timeout_s=cfg.timeout_s)
        except requests.exceptions.RequestException as e:
            console.print(f"[red]Transport error for batch: {e}[/red]")
            combined.extend([{"filename": p.name, "ok": False, "error": "transport_error"} for p in batch])
            continue

        combined.extend(resp.get("results", []) if isinstance(resp, dict) else [])

        if cfg.batch_delay_s and cfg.batch_delay_s > 0:
            time.sleep(cfg.batch_delay_s)

    return combined


def main() -> None:
    ap = argparse.ArgumentParser()
    ap.add_argument("--test-dir", required=True, help="Folder containing documents (recursively).")
    ap.add_argument("--gateway", default="http://127.0.0.1:8000", help="Gateway base URL.")
    ap.add_argument("--endpoint", default="/verify/batch", help="Batch verify endpoint path.")
    ap.add_argument("--name", default="gateway_eval", help="Run name suffix.")
    ap.add_argument("--timeout-s", type=int, default=120, help="HTTP timeout per batch (s).")
    ap.add_argument("--max-docs", type=int, default=0, help="Cap number of documents (0 = no cap).")
    ap.add_argument("--batch-size", type=int, default=4, help="Number of documents per batch.")
    ap.add_argument("--batch-delay-s", type=float, default=0.0, help="Sleep seconds between batches.")
    args = ap.parse_args()

    cfg = EvalConfig(
        gateway_url=args.gateway.rstrip("/"),
        endpoint=args.endpoint if args.endpoint.startswith("/") else f"/{args.endpoint}",
        test_dir=Path(args.test_dir),
        name=args.name,
        timeout_s=int(args.timeout_s),
        max_docs=(None if int(args.max_docs) <= 0 else int(args.max_docs)),
        batch_size=int(args.batch_size),
        batch_delay_s=float(args.batch_delay_s),
    )

    docs = _iter_documents(cfg.test_dir)
    if cfg.max_docs is not None:
        docs = docs[: cfg.max_docs]
    if not docs:
        raise SystemExit(f"No documents found under: {cfg.test_dir}")

    started = _utc_ts_compact()
    t0 = time.time()
    response = {"results": _call_batches(cfg, docs)}
    duration = time.time() - t0

    out_dir = Path("artifacts") / "eval_runs" / f"{started}_{cfg.name}"
    metrics, rows = _compute_metrics(response)
    _write_artifacts(
        out_dir=out_dir,
        cfg=cfg,
        docs=docs,
        response=response,
        metrics=metrics,
        rows=rows,
        started_at_utc=started,
        duration_s=duration,
    )
    _print_summary(metrics, out_dir)


if __name__ == "__main__":
    main()
