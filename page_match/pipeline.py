"""Directory listing and the parallel page hashing pipeline.

Pages are sorted by path and numbered *before* any work is handed to the
thread pool, so a page's sequence index never depends on which worker
finishes first.
"""
from concurrent.futures import ThreadPoolExecutor, as_completed
from dataclasses import dataclass, field
from pathlib import Path
from typing import List, Tuple, Union
import logging
import os

from PIL import Image

from page_match import config
from page_match.exceptions import (
    DirectoryAccessError,
    MissingFilenameError,
    PageReadError,
)
from page_match.features import (
    DEFAULT_HASH_CONFIG,
    HashConfig,
    HashedImage,
    compute_fingerprint,
    decode_image,
)

logger = logging.getLogger(__name__)

# More chunks than workers keeps the pool busy when page sizes vary a lot.
CHUNKS_PER_WORKER = 4


@dataclass(frozen=True, order=True)
class Page:
    """A regular file found directly under a page directory, ordered by path."""
    path: Path
    size: int = field(compare=False)


def list_pages(directory: Union[str, Path]) -> List[Page]:
    """List regular files directly under ``directory`` (not recursive, unsorted)."""
    directory = Path(directory)
    try:
        with os.scandir(directory) as it:
            entries = list(it)
    except OSError as e:
        raise DirectoryAccessError(directory, "list pages", e) from e

    pages: List[Page] = []
    for entry in entries:
        try:
            if not entry.is_file():
                continue
            size = entry.stat().st_size
        except OSError as e:
            raise DirectoryAccessError(entry.path, "read metadata for", e) from e
        pages.append(Page(Path(entry.path), size))
    return pages


def _read_bytes(path: Path) -> bytes:
    try:
        with open(path, "rb") as f:
            return f.read()
    except OSError as e:
        raise PageReadError(path, "cannot read page", e) from e


def load_image(path: Union[str, Path]) -> Image.Image:
    """Read and decode a single image file."""
    path = Path(path)
    if not path.name:
        raise MissingFilenameError(path)
    return decode_image(_read_bytes(path), str(path))


def hash_page(page: Page, index: int, hash_config: HashConfig = DEFAULT_HASH_CONFIG) -> HashedImage:
    filename = page.path.name
    if not filename:
        raise MissingFilenameError(page.path)
    data = _read_bytes(page.path)
    with decode_image(data, str(page.path)) as image:
        fingerprint = compute_fingerprint(image, hash_config)
    logger.debug(f"Hashed {page.path} ({page.size} bytes) -> {fingerprint}")
    return HashedImage(filename=filename, index=index, fingerprint=fingerprint)


def _hash_chunk(chunk: List[Tuple[int, Page]], hash_config: HashConfig) -> List[HashedImage]:
    return [hash_page(page, index, hash_config) for index, page in chunk]


def _partition(items: List, parts: int) -> List[List]:
    """Split ``items`` into at most ``parts`` contiguous, non-empty chunks."""
    if not items:
        return []
    size = max(1, -(-len(items) // max(1, parts)))
    return [items[i:i + size] for i in range(0, len(items), size)]


def hash_images(
    directory: Union[str, Path],
    hash_config: HashConfig = DEFAULT_HASH_CONFIG,
    workers: int = config.WORKERS,
) -> List[HashedImage]:
    """Fingerprint every page of ``directory``.

    The first page that cannot be read or decoded aborts the whole directory;
    chunks that have not started yet are cancelled. The returned list is in
    completion order, use ``HashedImage.index`` to recover page order.
    """
    directory = Path(directory)
    logger.info(f"Hashing pages from {directory}…")

    pages = sorted(list_pages(directory))
    numbered = list(enumerate(pages))

    hashed: List[HashedImage] = []
    if workers <= 1 or len(numbered) <= 1:
        hashed.extend(_hash_chunk(numbered, hash_config))
    else:
        chunks = _partition(numbered, workers * CHUNKS_PER_WORKER)
        logger.debug(f"Parallel hash: {len(chunks)} chunks, {workers} workers")
        with ThreadPoolExecutor(max_workers=workers) as executor:
            futures = [executor.submit(_hash_chunk, chunk, hash_config) for chunk in chunks]
            try:
                for future in as_completed(futures):
                    hashed.extend(future.result())
            except Exception:
                for future in futures:
                    future.cancel()
                raise

    logger.info(f"Hashed {len(hashed)} pages from {directory}")
    return hashed
