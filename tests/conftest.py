import numpy as np
import pytest
from pathlib import Path
from PIL import Image, ImageDraw

import imagehash

from page_match.features import HashedImage

BITS = 40


def make_page(seed: int, size=(200, 280)) -> Image.Image:
    """A fake scanned page: light background with a few gray blocks."""
    rng = np.random.default_rng(seed)
    w, h = size
    img = Image.new("L", size, 235)
    draw = ImageDraw.Draw(img)
    for _ in range(6):
        x0 = int(rng.integers(0, w - 40))
        y0 = int(rng.integers(0, h - 40))
        x1 = int(rng.integers(x0 + 20, w))
        y1 = int(rng.integers(y0 + 20, h))
        draw.rectangle((x0, y0, x1, y1), fill=int(rng.integers(0, 180)))
    return img.convert("RGB")


def fingerprint(*bits: int, width: int = BITS) -> imagehash.ImageHash:
    """Fingerprint with exactly the given bit positions set."""
    arr = np.zeros(width, dtype=bool)
    arr[list(bits)] = True
    return imagehash.ImageHash(arr)


def hashed(filename: str, index: int, *bits: int) -> HashedImage:
    return HashedImage(filename=filename, index=index, fingerprint=fingerprint(*bits))


@pytest.fixture()
def write_page():
    """Returns a helper that renders page ``seed`` into ``directory/name``."""

    def _write(directory: Path, name: str, seed: int, **save_kwargs) -> Path:
        directory.mkdir(parents=True, exist_ok=True)
        path = directory / name
        make_page(seed).save(path, **save_kwargs)
        return path

    return _write


@pytest.fixture()
def book(tmp_path: Path, write_page):
    """Old pages a/b/c, new pages: exact copies of a and c plus an unrelated page."""
    old = tmp_path / "old"
    new = tmp_path / "new"
    write_page(old, "a.png", 1)
    write_page(old, "b.png", 2)
    write_page(old, "c.png", 3)
    write_page(new, "a2.png", 1)
    write_page(new, "c2.png", 3)
    write_page(new, "z.png", 99)
    return old, new
