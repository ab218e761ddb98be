import io

import imagehash
import numpy as np
import pytest
from PIL import Image

from page_match import features
from page_match.exceptions import PageDecodeError

from conftest import make_page


@pytest.fixture()
def sample_image() -> Image.Image:
    return make_page(7)


def test_fingerprint_is_deterministic(sample_image):
    a = features.compute_fingerprint(sample_image)
    b = features.compute_fingerprint(sample_image.copy())
    assert a == b
    assert features.hash_distance(a, b) == 0


def test_default_fingerprint_is_40_bits(sample_image):
    fp = features.compute_fingerprint(sample_image)
    assert fp.hash.size == 40


@pytest.mark.parametrize(
    "algorithm,bits",
    [
        ("mean", 64),
        ("gradient", 64),
        ("vert_gradient", 64),
        ("double_gradient", 40),
        ("blockhash", 64),
    ],
)
@pytest.mark.parametrize("preprocess", [None, "dct", "diff_gauss"])
def test_every_configuration_produces_fixed_width(sample_image, algorithm, bits, preprocess):
    cfg = features.HashConfig(algorithm=algorithm, preprocess=preprocess)
    fp = features.compute_fingerprint(sample_image, cfg)
    assert fp.hash.size == bits
    assert features.compute_fingerprint(sample_image, cfg) == fp


def test_rescaled_page_is_closer_than_other_page(sample_image):
    w, h = sample_image.size
    smaller = sample_image.resize((int(w * 0.9), int(h * 0.9)))
    other = make_page(8)
    base = features.compute_fingerprint(sample_image)
    near = features.hash_distance(base, features.compute_fingerprint(smaller))
    far = features.hash_distance(base, features.compute_fingerprint(other))
    assert near < far


def test_jpeg_recompression_keeps_fingerprint_close(sample_image):
    buf = io.BytesIO()
    sample_image.save(buf, format="JPEG", quality=70)
    recompressed = features.decode_image(buf.getvalue(), "page.jpg")
    base = features.compute_fingerprint(sample_image)
    other = features.compute_fingerprint(make_page(8))
    near = features.hash_distance(base, features.compute_fingerprint(recompressed))
    assert near < features.hash_distance(base, other)


@pytest.mark.parametrize(
    "kwargs",
    [
        {"algorithm": "wavelet"},
        {"preprocess": "sharpen"},
        {"hash_size": (1, 8)},
    ],
)
def test_invalid_config_rejected(kwargs):
    with pytest.raises(ValueError):
        features.HashConfig(**kwargs)


def test_decode_image_rejects_garbage():
    with pytest.raises(PageDecodeError) as exc:
        features.decode_image(b"definitely not an image", "junk.png")
    assert exc.value.operation == "identify"
    assert exc.value.path.name == "junk.png"


def test_decode_image_rejects_truncated_png(sample_image):
    buf = io.BytesIO()
    sample_image.save(buf, format="PNG")
    data = buf.getvalue()
    with pytest.raises(PageDecodeError):
        features.decode_image(data[: len(data) // 2], "half.png")


def test_compare_images_reports_every_algorithm(sample_image):
    rows = features.compare_images(sample_image, sample_image.copy())
    assert [label for label, _, _ in rows] == [label for label, _, _ in features.COMPARISONS]
    assert all(dist_pre == 0 and dist == 0 for _, dist_pre, dist in rows)


@pytest.mark.parametrize(
    "algorithm,library_hash",
    [
        ("mean", imagehash.average_hash),
        ("gradient", imagehash.dhash),
        ("vert_gradient", imagehash.dhash_vertical),
    ],
)
def test_plain_hashes_come_from_imagehash(sample_image, algorithm, library_hash):
    cfg = features.HashConfig(algorithm=algorithm, preprocess=None)
    assert features.compute_fingerprint(sample_image, cfg) == library_hash(sample_image, hash_size=8)


def test_blockhash_thresholds_each_band_on_its_own_median():
    # brightness rises row by row, so a single global median would leave the top half empty
    ramp = np.repeat(np.arange(256, dtype=np.uint8)[:, None], 64, axis=1)
    cfg = features.HashConfig(algorithm="blockhash", preprocess=None)
    bits = features.compute_fingerprint(Image.fromarray(ramp), cfg).hash
    assert bits.shape == (8, 8)
    for row in range(8):
        assert bits[row].all() == (row % 2 == 1)
        assert bits[row].any() == (row % 2 == 1)
