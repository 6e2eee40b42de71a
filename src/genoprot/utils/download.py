"""Streaming download helpers for reference data."""

from __future__ import annotations

import gzip
import shutil
import urllib.error
import urllib.request
from pathlib import Path
from typing import IO, Optional

from tqdm import tqdm

from genoprot.exceptions import DownloadError
from genoprot.utils.logging import get_logger

DOWNLOAD_CHUNK_SIZE = 1024 * 1024

logger = get_logger("download")


def stream_download(
    url: str,
    destination: Path,
    *,
    response: Optional[IO[bytes]] = None,
    show_progress: bool = True,
) -> Path:
    """Download *url* to *destination* through a ``.partial`` file."""
    destination.parent.mkdir(parents=True, exist_ok=True)
    tmp_path = destination.with_suffix(destination.suffix + ".partial")
    close_response = False
    try:
        if response is None:
            response = urllib.request.urlopen(url)
            close_response = True
        total_header = response.getheader("Content-Length") if hasattr(response, "getheader") else None
        total = int(total_header) if total_header else None
        with open(tmp_path, "wb") as handle, tqdm(
            total=total,
            unit="B",
            unit_scale=True,
            desc=destination.name,
            disable=not show_progress,
        ) as bar:
            while True:
                chunk = response.read(DOWNLOAD_CHUNK_SIZE)
                if not chunk:
                    break
                handle.write(chunk)
                bar.update(len(chunk))
        tmp_path.replace(destination)
        return destination
    except (urllib.error.HTTPError, urllib.error.URLError) as exc:
        raise DownloadError(f"Failed to download {url}: {exc}") from exc
    finally:
        if close_response and response is not None:
            response.close()


def gunzip_file(src: Path, dest: Path) -> Path:
    """Decompress a GZip file from *src* into *dest*."""
    dest.parent.mkdir(parents=True, exist_ok=True)
    tmp_path = dest.with_suffix(dest.suffix + ".partial")
    try:
        with gzip.open(src, "rb") as gz_in, open(tmp_path, "wb") as out:
            shutil.copyfileobj(gz_in, out)
    except (OSError, EOFError) as exc:
        raise DownloadError(f"Failed to decompress {src}: {exc}") from exc
    tmp_path.replace(dest)
    return dest


def download_and_gunzip(url: str, destination: Path) -> Path:
    """Fetch a ``.gz`` resource and leave only its decompressed form at *destination*."""
    archive = destination.with_name(destination.name + ".gz")
    logger.info(f"Downloading {url}")
    stream_download(url, archive)
    gunzip_file(archive, destination)
    archive.unlink()
    return destination
