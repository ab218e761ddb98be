"""Reporting utilities: text page mapping and CSV output.

报告模块：输出文本格式的页面映射，以及 CSV 报表。
"""
import csv
from pathlib import Path
from typing import Dict, List, TextIO
import sys

from page_match.matcher import MatchResult


CSV_FIELDS = [
    "new_page",
    "new_index",
    "status",
    "old_page",
    "old_index",
    "distance",
]


def format_mapping(result: MatchResult, old_dir: Path, new_dir: Path) -> List[str]:
    lines = ["PAGE MAPPING:"]
    for m in result.matches:
        new_path = Path(new_dir) / m.src.filename
        if m.dst is None:
            lines.append(f"\t{new_path} (NEW PAGE)")
        else:
            old, distance = m.dst
            lines.append(f"\t{new_path} MATCH {Path(old_dir) / old.filename} (DISTANCE: {distance})")

    if result.removed:
        lines.append("")
        lines.append("MISSING PAGES")
        for old in result.removed:
            lines.append(f"\t{Path(old_dir) / old.filename}")
    return lines


def print_report(result: MatchResult, old_dir: Path, new_dir: Path, out: TextIO = None):
    out = out or sys.stdout
    for line in format_mapping(result, old_dir, new_dir):
        print(line, file=out)


def _rows(result: MatchResult, old_dir: Path, new_dir: Path) -> List[Dict]:
    rows = []
    for m in result.matches:
        row = {
            "new_page": str(Path(new_dir) / m.src.filename),
            "new_index": m.src.index,
            "status": "new",
        }
        if m.dst is not None:
            old, distance = m.dst
            row.update(
                status="match",
                old_page=str(Path(old_dir) / old.filename),
                old_index=old.index,
                distance=distance,
            )
        rows.append(row)
    # removed pages have no new side
    # 被删除的页面没有对应的新页面
    for old in result.removed:
        rows.append(
            {
                "status": "missing",
                "old_page": str(Path(old_dir) / old.filename),
                "old_index": old.index,
            }
        )
    return rows


def write_csv(result: MatchResult, old_dir: Path, new_dir: Path, out_path: Path):
    with Path(out_path).open("w", newline="", encoding="utf-8") as f:
        writer = csv.DictWriter(f, fieldnames=CSV_FIELDS)
        writer.writeheader()
        for r in _rows(result, old_dir, new_dir):
            writer.writerow({k: r.get(k, "") for k in CSV_FIELDS})
