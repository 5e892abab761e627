import argparse
import json
from pathlib import Path
from typing import Any, Dict, List


def _load_json(p: Path) -> Dict[str, Any]:
    return json.loads(p.read_text(encoding="utf-8"))


def check_gate(
    m: Dict[str, Any],
    b: Dict[str, Any],
    *,
    min_ok_rate: float,
    min_complete_rate: float,
    min_mean_confidence: float,
    allow_complete_drop: float,
) -> List[str]:
    ok_rate = float(m.get("ok_rate", 0.0))
    complete_rate = float(m.get("complete_rate", 0.0))
    mean_conf = float(m.get("mean_confidence", 0.0))
    b_complete = float(b.get("complete_rate", 0.0))

    failures = []
    if ok_rate < min_ok_rate:
        failures.append(f"ok_rate {ok_rate:.4f} < {min_ok_rate:.4f}")
    if complete_rate < min_complete_rate:
        failures.append(f"complete_rate {complete_rate:.4f} < {min_complete_rate:.4f}")
    if mean_conf < min_mean_confidence:
        failures.append(f"mean_confidence {mean_conf:.4f} < {min_mean_confidence:.4f}")
    if (b_complete - complete_rate) > allow_complete_drop:
        failures.append(
            f"complete_rate dropped {b_complete - complete_rate:.4f} > {allow_complete_drop:.4f} "
            f"(baseline={b_complete:.4f}, current={complete_rate:.4f})"
        )
    return failures


def main() -> None:
    ap = argparse.ArgumentParser()
    ap.add_argument("--metrics", required=True, help="Path to metrics.json from an eval run.")
    ap.add_argument("--baseline", required=True, help="Path to baseline metrics.json committed in repo.")
    ap.add_argument("--min-ok-rate", type=float, default=0.99)
    ap.add_argument("--min-complete-rate", type=float, default=0.80)
    ap.add_argument("--min-mean-confidence", type=float, default=0.70)
    ap.add_argument(
        "--allow-complete-drop",
        type=float,
        default=0.005,
        help="Allowed absolute drop in complete_rate vs baseline (e.g., 0.005 = 0.5%).",
    )
    args = ap.parse_args()

    m = _load_json(Path(args.metrics))
    b = _load_json(Path(args.baseline))

    failures = check_gate(
        m,
        b,
        min_ok_rate=args.min_ok_rate,
        min_complete_rate=args.min_complete_rate,
        min_mean_confidence=args.min_mean_confidence,
        allow_complete_drop=args.allow_complete_drop,
    )

    if failures:
        print("QUALITY GATE FAILED")
        for f in failures:
            print(" -", f)
        raise SystemExit(1)

    print("QUALITY GATE PASSED")
    print(
        f"ok_rate={float(m.get('ok_rate', 0.0)):.4f}, "
        f"complete_rate={float(m.get('complete_rate', 0.0)):.4f} "
        f"(baseline={float(b.get('complete_rate', 0.0)):.4f})"
    )


if __name__ == "__main__":
    main()
