import csv
from pathlib import Path

from page_match import report
from page_match.matcher import Match, MatchResult

from conftest import hashed


def _result():
    a, b, c = hashed("a.png", 0), hashed("b.png", 1, 5), hashed("c.png", 2, 9)
    a2, z = hashed("a2.png", 0, 1), hashed("z.png", 1, 30)
    return MatchResult(
        matches=[Match(src=a2, dst=(a, 1)), Match(src=z)],
        missing={"c.png", "b.png"},
        removed=[b, c],
    )


def test_format_mapping():
    lines = report.format_mapping(_result(), Path("old"), Path("new"))
    assert lines == [
        "PAGE MAPPING:",
        f"\t{Path('new/a2.png')} MATCH {Path('old/a.png')} (DISTANCE: 1)",
        f"\t{Path('new/z.png')} (NEW PAGE)",
        "",
        "MISSING PAGES",
        f"\t{Path('old/b.png')}",
        f"\t{Path('old/c.png')}",
    ]


def test_missing_section_omitted_when_empty():
    result = MatchResult(matches=[Match(src=hashed("n.png", 0))], missing=set(), removed=[])
    lines = report.format_mapping(result, Path("old"), Path("new"))
    assert "MISSING PAGES" not in lines
    assert lines[-1] == f"\t{Path('new/n.png')} (NEW PAGE)"


def test_write_csv(tmp_path: Path):
    out = tmp_path / "mapping.csv"
    report.write_csv(_result(), Path("old"), Path("new"), out)
    with out.open(newline="", encoding="utf-8") as f:
        rows = list(csv.DictReader(f))
    assert [r["status"] for r in rows] == ["match", "new", "missing", "missing"]
    assert rows[0]["old_page"] == str(Path("old/a.png"))
    assert rows[0]["distance"] == "1"
    assert rows[1]["old_page"] == ""
    assert rows[3]["new_page"] == ""
    assert rows[3]["old_index"] == "2"
