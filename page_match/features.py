"""Feature extraction utilities: perceptual page fingerprints.

This module implements:
- decode_image(data, name) -> PIL image
- compute_fingerprint(image, hash_config) -> imagehash.ImageHash
- hash_distance(a, b) -> int
- compare_images(first, second) -> per-algorithm distances (diagnostics)

The production fingerprint is a double-gradient hash over the low-frequency
DCT coefficients of an 8x8 configured grid (40 bits). Other algorithm and
preprocessing combinations exist for tuning with tools/compare_hashes.py.

特征提取工具：页面感知指纹。

本模块实现：
- decode_image(data, name) -> PIL 图像
- compute_fingerprint(image, hash_config) -> imagehash.ImageHash
- hash_distance(a, b) -> 汉明距离
- compare_images(first, second) -> 各算法的距离（用于调参）

生产环境使用 8x8 网格上基于 DCT 低频系数的双向梯度哈希（40 位）。
"""
from dataclasses import dataclass
from typing import List, Optional, Tuple
import io

import imagehash
import numpy as np
from PIL import Image, ImageFilter, UnidentifiedImageError
from scipy.fftpack import dct

from page_match import config
from page_match.exceptions import PageDecodeError

ALGORITHMS: Tuple[str, ...] = (
    "mean",
    "gradient",
    "vert_gradient",
    "double_gradient",
    "blockhash",
)
PREPROCESSORS: Tuple[Optional[str], ...] = (None, "dct", "diff_gauss")

# (label, algorithm, preprocessing) rows printed by the diagnostic tool
COMPARISONS: Tuple[Tuple[str, str, str], ...] = (
    ("Mean", "mean", "dct"),
    ("Gradient", "gradient", "dct"),
    ("VertGradient", "vert_gradient", "dct"),
    ("DoubleGradient", "double_gradient", "dct"),
    ("Blockhash", "blockhash", "diff_gauss"),
)


@dataclass(frozen=True)
class HashConfig:
    algorithm: str = config.HASH_ALGORITHM
    preprocess: Optional[str] = config.HASH_PREPROCESS
    hash_size: Tuple[int, int] = config.HASH_SIZE

    def __post_init__(self):
        if self.algorithm not in ALGORITHMS:
            raise ValueError(f"unknown hash algorithm: {self.algorithm!r}")
        if self.preprocess not in PREPROCESSORS:
            raise ValueError(f"unknown preprocessing: {self.preprocess!r}")
        width, height = self.hash_size
        if width < 2 or height < 2:
            raise ValueError(f"hash size must be at least 2x2, got {width}x{height}")


DEFAULT_HASH_CONFIG = HashConfig()


@dataclass(frozen=True)
class HashedImage:
    filename: str
    index: int
    fingerprint: imagehash.ImageHash


def decode_image(data: bytes, name: str) -> Image.Image:
    """Identify the format of ``data`` and fully decode it.

    Pillow opens lazily, so ``load`` is forced here to surface truncated or
    corrupt pixel data as a decode error rather than later during hashing.
    """
    try:
        img = Image.open(io.BytesIO(data))
    except (UnidentifiedImageError, Image.DecompressionBombError, OSError) as e:
        raise PageDecodeError(name, "identify", e) from e
    try:
        img.load()
    except (OSError, SyntaxError, ValueError) as e:
        raise PageDecodeError(name, "decode", e) from e
    return img


def _grid_size(algorithm: str, hash_size: Tuple[int, int]) -> Tuple[int, int]:
    width, height = hash_size
    if algorithm == "gradient":
        return width + 1, height
    if algorithm == "vert_gradient":
        return width, height + 1
    if algorithm == "double_gradient":
        return width // 2 + 1, height // 2 + 1
    return width, height


def _sample_grid(
    gray: Image.Image,
    cols: int,
    rows: int,
    preprocess: Optional[str],
    resample: Image.Resampling,
) -> np.ndarray:
    if preprocess == "dct":
        size = (cols * config.DCT_SCALE, rows * config.DCT_SCALE)
        pixels = np.asarray(gray.resize(size, Image.Resampling.LANCZOS), dtype=np.float64)
        coeffs = dct(dct(pixels, axis=0, norm="ortho"), axis=1, norm="ortho")
        # keep the low-frequency corner only
        # 仅保留左上角的低频系数
        return coeffs[:rows, :cols]
    if preprocess == "diff_gauss":
        fine_radius, coarse_radius = config.DIFF_GAUSS_RADII
        fine = np.asarray(gray.filter(ImageFilter.GaussianBlur(fine_radius)), dtype=np.float32)
        coarse = np.asarray(gray.filter(ImageFilter.GaussianBlur(coarse_radius)), dtype=np.float32)
        gray = Image.fromarray(fine - coarse)
    return np.asarray(gray.resize((cols, rows), resample), dtype=np.float64)


BLOCKHASH_BANDS = 4

# square plain-pixel hashes that imagehash computes itself
LIBRARY_HASHES = {
    "mean": imagehash.average_hash,
    "gradient": imagehash.dhash,
    "vert_gradient": imagehash.dhash_vertical,
}


def _band_median_bits(grid: np.ndarray) -> np.ndarray:
    """Threshold each horizontal band of blocks against its own median."""
    bands = np.array_split(grid.flatten(), BLOCKHASH_BANDS)
    bits = np.concatenate([band > np.median(band) for band in bands])
    return bits.reshape(grid.shape)


def _hash_bits(algorithm: str, grid: np.ndarray) -> np.ndarray:
    if algorithm == "mean":
        return grid > grid.mean()
    if algorithm == "blockhash":
        return _band_median_bits(grid)
    if algorithm == "gradient":
        return grid[:, 1:] > grid[:, :-1]
    if algorithm == "vert_gradient":
        return grid[1:, :] > grid[:-1, :]
    horizontal = grid[:, 1:] > grid[:, :-1]
    vertical = grid[1:, :] > grid[:-1, :]
    return np.concatenate([horizontal.flatten(), vertical.flatten()])


def compute_fingerprint(
    image: Image.Image,
    hash_config: HashConfig = DEFAULT_HASH_CONFIG,
) -> imagehash.ImageHash:
    """Compute the perceptual fingerprint of a decoded image."""
    gray = image.convert("L")
    width, height = hash_config.hash_size
    library_hash = LIBRARY_HASHES.get(hash_config.algorithm)
    if library_hash is not None and hash_config.preprocess is None and width == height:
        return library_hash(gray, hash_size=width)
    cols, rows = _grid_size(hash_config.algorithm, hash_config.hash_size)
    if hash_config.algorithm == "blockhash":
        resample = Image.Resampling.BOX
    else:
        resample = Image.Resampling.LANCZOS
    grid = _sample_grid(gray, cols, rows, hash_config.preprocess, resample)
    return imagehash.ImageHash(_hash_bits(hash_config.algorithm, grid))


def hash_distance(a: imagehash.ImageHash, b: imagehash.ImageHash) -> int:
    # imagehash returns a numpy integer; callers want a plain int
    return int(a - b)


def compare_images(
    first: Image.Image,
    second: Image.Image,
    hash_size: Tuple[int, int] = config.HASH_SIZE,
) -> List[Tuple[str, int, int]]:
    """Return (label, distance with preprocessing, distance without) per algorithm."""
    rows: List[Tuple[str, int, int]] = []
    for label, algorithm, preprocess in COMPARISONS:
        plain = HashConfig(algorithm=algorithm, preprocess=None, hash_size=hash_size)
        prepped = HashConfig(algorithm=algorithm, preprocess=preprocess, hash_size=hash_size)
        dist = hash_distance(compute_fingerprint(first, plain), compute_fingerprint(second, plain))
        dist_pre = hash_distance(compute_fingerprint(first, prepped), compute_fingerprint(second, prepped))
        rows.append((label, dist_pre, dist))
    return rows
