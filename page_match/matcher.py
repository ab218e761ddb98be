"""Matcher: pair every new page with at most one old page.

New pages are walked in page order; each one queries the index for old pages
within the distance threshold, drops those already claimed, and claims the
candidate with the lowest combined score (hash distance plus a penalty for
drifting away from its page position).

Matcher 模块：按页序遍历新版本页面，从索引中召回阈值内的旧页面，过滤已被
认领的候选，按“哈希距离 + 页码偏移惩罚”选出得分最低者并认领。
"""
from dataclasses import dataclass, field
from typing import Iterable, List, Optional, Set, Tuple
import threading

from page_match import config
from page_match.features import HashedImage


@dataclass(frozen=True)
class Match:
    src: HashedImage
    dst: Optional[Tuple[HashedImage, int]] = None

    @property
    def is_new(self) -> bool:
        return self.dst is None


@dataclass
class MatchResult:
    matches: List[Match]
    missing: Set[str]
    # unclaimed old pages in page order, for stable reports
    removed: List[HashedImage] = field(default_factory=list)


class ClaimSet:
    """Old-page filenames not yet claimed by a match.

    ``try_claim`` is the only mutation and is atomic, so the claim step stays
    correct even if matching is ever spread over several threads.
    """

    def __init__(self, filenames: Iterable[str]):
        self._remaining = set(filenames)
        self._lock = threading.Lock()

    def try_claim(self, filename: str) -> bool:
        with self._lock:
            if filename not in self._remaining:
                return False
            self._remaining.remove(filename)
            return True

    def remaining(self) -> Set[str]:
        with self._lock:
            return set(self._remaining)

    def __contains__(self, filename: str) -> bool:
        return filename in self._remaining

    def __len__(self) -> int:
        return len(self._remaining)


def combined_score(
    old: HashedImage,
    new: HashedImage,
    distance: int,
    position_divisor: int = config.POSITION_DIVISOR,
) -> int:
    return distance + abs(old.index - new.index) // position_divisor


def _select(
    new: HashedImage,
    candidates: List[Tuple[HashedImage, int]],
    position_divisor: int,
) -> Optional[Tuple[HashedImage, int]]:
    if not candidates:
        return None
    # ties: lower raw distance, then earlier old page
    return min(
        candidates,
        key=lambda c: (combined_score(c[0], new, c[1], position_divisor), c[1], c[0].index),
    )


def match_pages(
    new_images: Iterable[HashedImage],
    index,
    threshold: int,
    position_divisor: int = config.POSITION_DIVISOR,
) -> MatchResult:
    """Map each new page to its best unclaimed old page within ``threshold``.

    ``index`` is any object with ``find(query, radius)`` and iteration over
    its items (see ``page_match.indexer``). The returned matches follow new
    page order, one per new page.
    """
    if isinstance(threshold, bool) or not isinstance(threshold, int) or threshold < 0:
        raise ValueError(f"threshold must be a non-negative integer, got {threshold!r}")
    if isinstance(position_divisor, bool) or not isinstance(position_divisor, int) or position_divisor <= 0:
        raise ValueError(f"position_divisor must be a positive integer, got {position_divisor!r}")

    old_images = list(index)
    missing = ClaimSet(img.filename for img in old_images)

    matches: List[Match] = []
    for image in sorted(new_images, key=lambda img: img.index):
        candidates = [
            (old, dist)
            for old, dist in index.find(image, threshold)
            if old.filename in missing
        ]
        best = _select(image, candidates, position_divisor)
        if best is not None and missing.try_claim(best[0].filename):
            matches.append(Match(src=image, dst=best))
        else:
            matches.append(Match(src=image))

    remaining = missing.remaining()
    removed = sorted(
        (img for img in old_images if img.filename in remaining),
        key=lambda img: img.index,
    )
    return MatchResult(matches=matches, missing=remaining, removed=removed)
