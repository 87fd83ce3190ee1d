from __future__ import annotations

import logging
import os
import shutil
from pathlib import Path
from typing import BinaryIO
from urllib.parse import unquote, urlparse

import requests

from ..errors import FetchError

logger = logging.getLogger(__name__)

HTTP_TIMEOUT_S = 60
_CHUNK = 64 * 1024


def _local_source(resource_url: str) -> str | None:
    if resource_url.startswith("file://"):
        u = urlparse(resource_url)
        # file://relative/path puts the first segment into netloc.
        return unquote(u.netloc + u.path if u.netloc else u.path)
    if "://" not in resource_url:
        return resource_url
    return None


def _create_new(dst: str) -> BinaryIO:
    """Open ``dst`` as a fresh regular file.

    ``dst`` sits in a user-writable home: an existing entry (possibly a
    symlink) is unlinked, never followed, and the file is created exclusively.
    """

    try:
        if os.path.lexists(dst):
            logger.warning("Replacing existing %s", dst)
            os.unlink(dst)
        fd = os.open(dst, os.O_WRONLY | os.O_CREAT | os.O_EXCL | os.O_NOFOLLOW, 0o600)
    except OSError as e:
        raise FetchError(f"Cannot create {dst}: {e}") from e
    return os.fdopen(fd, "wb")


def _discard(dst: str) -> None:
    try:
        os.unlink(dst)
    except FileNotFoundError:
        pass
    except OSError as e:
        logger.warning("Cannot remove partial file %s: %s", dst, e)


def copy_local_file(src: str, dst: str) -> None:
    s = Path(src)
    if not s.is_file():
        raise FetchError(f"Source file not found: {src}")
    try:
        fin = s.open("rb")
    except OSError as e:
        raise FetchError(f"Cannot read {src}: {e}") from e
    with fin, _create_new(dst) as fout:
        try:
            shutil.copyfileobj(fin, fout)
        except OSError as e:
            _discard(dst)
            raise FetchError(f"Cannot copy {src} -> {dst}: {e}") from e


def download_file(url: str, dst: str) -> None:
    created = False
    try:
        with requests.get(url, stream=True, allow_redirects=True, timeout=HTTP_TIMEOUT_S) as r:
            if r.status_code != requests.codes.ok:
                raise FetchError(f"Download failed: {r.status_code} {r.reason}")
            with _create_new(dst) as f:
                created = True
                for chunk in r.iter_content(chunk_size=_CHUNK):
                    if chunk:
                        f.write(chunk)
    except requests.exceptions.RequestException as e:
        if created:
            _discard(dst)
        raise FetchError(f"Download of {url} failed: {e}") from e
    except OSError as e:
        if created:
            _discard(dst)
        raise FetchError(f"Cannot write {dst}: {e}") from e


def fetch_manifest(resource_url: str, dst: str) -> str:
    """Place the manifest at ``dst`` from a file:// URL, a plain path or http(s)."""

    logger.info("Fetching manifest from %s", resource_url)
    src = _local_source(resource_url)
    if src is not None:
        logger.info("Copying local file %s -> %s", src, dst)
        copy_local_file(src, dst)
    else:
        download_file(resource_url, dst)
    return dst
