"""Generate a synthetic two-version "book" for page matching experiments.

Creates `synth_old` and `synth_new` under the output directory and a labels
CSV `synth_labels.csv` listing, for every new page, the old page it should
match (empty for inserted pages).

The new version re-encodes every page as JPEG at a slightly different scale,
drops one page from the middle and inserts fresh pages near the start and the
end, which shifts the numbering of everything after them.

Usage:
  python tools/generate_synthetic.py --out_dir ./data --pages 20
"""
import argparse
import csv
import random
from pathlib import Path
from typing import List, Tuple

from PIL import Image, ImageDraw

PAGE_SIZE = (600, 850)


def render_page(seed: int, size: Tuple[int, int] = PAGE_SIZE) -> Image.Image:
    """Draw a page of fake text lines, paragraph gaps and figures."""
    rng = random.Random(seed)
    w, h = size
    img = Image.new("L", size, 245)
    draw = ImageDraw.Draw(img)
    y = 60
    draw.rectangle((60, y, 60 + rng.randint(150, 400), y + 30), fill=20)
    y += 70
    while y < h - 80:
        if rng.random() < 0.12:
            block_h = rng.randint(80, 220)
            x0 = rng.randint(60, 200)
            x1 = w - rng.randint(60, 200)
            draw.rectangle((x0, y, x1, min(h - 80, y + block_h)), fill=rng.randint(60, 170))
            y += block_h + 24
            continue
        line_w = rng.randint(int(w * 0.3), w - 120)
        draw.rectangle((60, y, 60 + line_w, y + 10), fill=40)
        y += 22
        if rng.random() < 0.15:
            y += 24
    return img


def generate(out_dir: Path, pages: int = 20, seed: int = 0) -> Path:
    old = out_dir / 'synth_old'
    new = out_dir / 'synth_new'
    old.mkdir(parents=True, exist_ok=True)
    new.mkdir(parents=True, exist_ok=True)

    rng = random.Random(seed)
    originals: List[Tuple[str, Image.Image]] = []
    for i in range(pages):
        img = render_page(seed * 10007 + i)
        name = f'page_{i + 1:03d}.png'
        img.save(old / name)
        originals.append((name, img))

    # new version: one page removed, two inserted
    sequence: List[Tuple[str, Image.Image]] = list(originals)
    del sequence[pages // 2]
    sequence.insert(1, ('', render_page(seed * 10007 + 50000)))
    sequence.insert(len(sequence) - 1, ('', render_page(seed * 10007 + 50001)))

    labels = []
    for pos, (old_name, img) in enumerate(sequence):
        scale = rng.uniform(0.9, 1.1)
        w, h = img.size
        variant = img.resize((max(1, int(w * scale)), max(1, int(h * scale))))
        new_name = f'{pos + 1:04d}.jpg'
        variant.save(new / new_name, quality=rng.randint(60, 90))
        labels.append((new_name, old_name))

    labp = out_dir / 'synth_labels.csv'
    with open(labp, 'w', newline='', encoding='utf-8') as f:
        w = csv.writer(f)
        w.writerow(['new_page', 'old_page'])
        for row in labels:
            w.writerow(row)

    print('Synthetic book created:')
    print(' OLD:', old)
    print(' NEW:', new)
    print(' Labels:', labp)
    return labp


if __name__ == '__main__':
    parser = argparse.ArgumentParser()
    parser.add_argument('--out_dir', default='./data')
    parser.add_argument('--pages', type=int, default=20)
    parser.add_argument('--seed', type=int, default=0)
    args = parser.parse_args()
    generate(Path(args.out_dir), pages=args.pages, seed=args.seed)
