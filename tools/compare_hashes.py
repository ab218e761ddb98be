"""Compare two images under every fingerprint algorithm.

Usage:
    python tools/compare_hashes.py page_old.png page_new.jpg

Prints, for each algorithm, the distance with its preprocessing step (DCT, or
difference of Gaussians for Blockhash) and without it. Useful to see how
sensitive an algorithm is to the kind of differences two scans exhibit, and
how much the preprocessing matters, before picking a --distance threshold.
"""
import argparse
import sys
from pathlib import Path

# Ensure repo root is on sys.path so `page_match` package is importable
_ROOT = Path(__file__).resolve().parents[1]
if str(_ROOT) not in sys.path:
    sys.path.insert(0, str(_ROOT))

from page_match import features, pipeline
from page_match.exceptions import PageMatchError


def parse_args():
    p = argparse.ArgumentParser(description="Print hash distances between two images")
    p.add_argument("first", type=Path)
    p.add_argument("second", type=Path)
    return p.parse_args()


def main():
    args = parse_args()
    try:
        first = pipeline.load_image(args.first)
        second = pipeline.load_image(args.second)
    except PageMatchError as e:
        print(f"error: {e}", file=sys.stderr)
        sys.exit(1)

    pre_label = {"Blockhash": "DoG"}
    for label, dist_pre, dist in features.compare_images(first, second):
        print(f"Algo: {label}, dist: {dist_pre} (w/o {pre_label.get(label, 'DCT')}: {dist})")


if __name__ == "__main__":
    main()
