"""Quick evaluator for the synthetic page matching dataset.

Usage example:
    python tools/verify_synthetic.py \
      --old_dir data/synth_old \
      --new_dir data/synth_new \
      --labels data/synth_labels.csv \
      --distance 6

The script runs the page matching pipeline against the synthetic book and
reports how many matched and inserted pages are detected correctly, along
with any mismatches. With --sweep it evaluates a range of thresholds instead,
reusing the same fingerprints.
"""
import argparse
import csv
import sys
from pathlib import Path
from typing import Dict, List

ROOT = Path(__file__).resolve().parents[1]
if str(ROOT) not in sys.path:
    sys.path.insert(0, str(ROOT))

from page_match import indexer, matcher, pipeline
from page_match.features import HashedImage


def load_labels(path: Path) -> Dict[str, str]:
    rows: Dict[str, str] = {}
    with path.open(newline="", encoding="utf-8") as f:
        reader = csv.DictReader(f)
        for row in reader:
            rows[row["new_page"]] = row["old_page"]
    return rows


def evaluate(
    old: List[HashedImage],
    new: List[HashedImage],
    labels: Dict[str, str],
    *,
    distance: int,
    position_divisor: int,
) -> Dict[str, object]:
    idx = indexer.build_index(old)
    result = matcher.match_pages(new, idx, distance, position_divisor=position_divisor)

    stats = {
        "distance": distance,
        "match_total": 0,
        "match_hits": 0,
        "new_total": 0,
        "new_hits": 0,
        "mismatches": [],
    }
    for m in result.matches:
        expected = labels.get(m.src.filename, "")
        predicted = m.dst[0].filename if m.dst is not None else ""
        key = "match" if expected else "new"
        stats[f"{key}_total"] += 1
        if predicted == expected:
            stats[f"{key}_hits"] += 1
        else:
            stats["mismatches"].append(
                {
                    "page": m.src.filename,
                    "expected": expected,
                    "predicted": predicted,
                    "distance": m.dst[1] if m.dst is not None else None,
                }
            )
    return stats


def format_summary(stats: Dict[str, object]) -> str:
    match_total = stats["match_total"] or 1
    new_total = stats["new_total"] or 1
    lines: List[str] = [f"Threshold: {stats['distance']}"]
    lines.append(
        f"Matched pages: {stats['match_hits']}/{stats['match_total']}"
        f" ({stats['match_hits']/match_total:.1%})"
    )
    lines.append(
        f"Inserted pages: {stats['new_hits']}/{stats['new_total']}"
        f" ({stats['new_hits']/new_total:.1%})"
    )
    mismatches = stats["mismatches"]
    if mismatches:
        lines.append("\nMismatches:")
        for miss in mismatches:
            lines.append(
                f" - {miss['page']}: expected {miss['expected'] or 'NEW PAGE'}"
                f" -> predicted {miss['predicted'] or 'NEW PAGE'}"
            )
    else:
        lines.append("\nAll pages matched expected labels.")
    return "\n".join(lines)


def parse_args() -> argparse.Namespace:
    p = argparse.ArgumentParser(description="Evaluate the synthetic page matching dataset")
    p.add_argument("--old_dir", default="data/synth_old")
    p.add_argument("--new_dir", default="data/synth_new")
    p.add_argument("--labels", default="data/synth_labels.csv")
    p.add_argument("--distance", type=int, default=6)
    p.add_argument("--position_divisor", type=int, default=5)
    p.add_argument("--sweep", action="store_true", help="Evaluate thresholds 0..--distance")
    p.add_argument("--out_csv", default=None, help="Write sweep results to this CSV")
    return p.parse_args()


def main() -> None:
    args = parse_args()
    labels = load_labels(Path(args.labels))
    old = pipeline.hash_images(Path(args.old_dir))
    new = pipeline.hash_images(Path(args.new_dir))

    thresholds = range(args.distance + 1) if args.sweep else [args.distance]
    results = []
    for distance in thresholds:
        stats = evaluate(
            old,
            new,
            labels,
            distance=distance,
            position_divisor=args.position_divisor,
        )
        results.append(stats)
        print(format_summary(stats))
        print()

    if args.out_csv:
        with open(args.out_csv, "w", newline="", encoding="utf-8") as f:
            w = csv.writer(f)
            w.writerow(["distance", "match_hits", "match_total", "new_hits", "new_total"])
            for s in results:
                w.writerow([s["distance"], s["match_hits"], s["match_total"], s["new_hits"], s["new_total"]])
        print("Sweep results:", args.out_csv)


if __name__ == "__main__":
    main()
