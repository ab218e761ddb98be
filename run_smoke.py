"""Run a simple smoke test of the page matching pipeline without pytest.

Creates a small synthetic two-version book in temporary directories and runs
the main flow end to end.
"""
import tempfile
from pathlib import Path

from page_match import indexer, matcher, pipeline, report
from tools.generate_synthetic import generate


def run():
    with tempfile.TemporaryDirectory() as data_dir, tempfile.TemporaryDirectory() as out_dir:
        datap = Path(data_dir)
        outp = Path(out_dir)
        generate(datap, pages=8)
        old_dir = datap / "synth_old"
        new_dir = datap / "synth_new"

        print("Hashing pages...")
        old = pipeline.hash_images(old_dir)
        new = pipeline.hash_images(new_dir)
        print("Building index...")
        idx = indexer.build_index(old)
        print("Matching...")
        result = matcher.match_pages(new, idx, 6)
        report.print_report(result, old_dir, new_dir)
        csvp = outp / "page_mapping.csv"
        report.write_csv(result, old_dir, new_dir, csvp)
        print(f"Smoke run complete. Report: {csvp}")


if __name__ == "__main__":
    run()
