# civitdl/core/download.py
from __future__ import annotations
from dataclasses import dataclass
from pathlib import Path
from typing import Optional, Union
import logging

import requests

from .errors import ContentLengthUnavailable, FetchFailed, FilenameUnavailable, LocalIOError
from .models import ResourceFile
from .progress import ProgressBoard
from .utils import content_length, filename_from_disposition, size_matches_kb

logger = logging.getLogger(__name__)

COMPLETED = "completed"
ALREADY_EXISTS = "already_exists"


@dataclass(frozen=True)
class TransferOutcome:
    status: str
    path: Path
    filename: str
    bytes_written: int = 0


class TransferEngine:
    """
    Streams one file to disk. No UI here: progress goes to the board,
    which whoever renders bars subscribes to.
    - filename comes from Content-Disposition, never from the URL
    - an existing file of the catalog's size is left alone
    - no resume and no cleanup: a failed write leaves the partial file
    """

    def __init__(self, session: requests.Session, progress: Optional[ProgressBoard] = None,
                 chunk_size: int = 128 * 1024, timeout: int = 30):
        self.session = session
        self.progress = progress
        self.chunk_size = chunk_size
        self.timeout = timeout

    def transfer(self, url: str, destination_dir: Union[Path, str],
                 selected: ResourceFile, label: Optional[str] = None) -> TransferOutcome:
        if not url:
            raise FetchFailed(url, "no download URL")
        logger.debug("Starting download %s -> %s", url, destination_dir)
        try:
            r = self.session.get(url, stream=True, timeout=self.timeout)
        except requests.RequestException as e:
            raise FetchFailed(url, str(e)) from e

        with r:
            if not 200 <= r.status_code < 300:
                raise FetchFailed(url, f"HTTP {r.status_code}")

            filename = filename_from_disposition(r.headers.get("Content-Disposition"))
            if not filename:
                raise FilenameUnavailable(url)
            out_path = Path(destination_dir) / filename

            if out_path.is_file() and size_matches_kb(out_path, selected.size_kb):
                logger.info("Already have %s (%.0f KB), skipping", out_path, selected.size_kb)
                return TransferOutcome(ALREADY_EXISTS, out_path, filename)

            total = content_length(r.headers)
            if total is None:
                raise ContentLengthUnavailable(url)

            try:
                out_path.parent.mkdir(parents=True, exist_ok=True)
            except OSError as e:
                raise LocalIOError(out_path.parent, str(e)) from e

            track = self.progress.track(label or filename, total) if self.progress else None
            written = 0
            try:
                with open(out_path, "wb") as f:
                    for chunk in r.iter_content(chunk_size=self.chunk_size):
                        if not chunk:
                            continue
                        f.write(chunk)
                        written += len(chunk)
                        if track:
                            track.advance(len(chunk))
            except (OSError, requests.RequestException) as e:
                raise LocalIOError(out_path, str(e)) from e
            finally:
                if track:
                    track.finish()

        logger.debug("Download finished: %s (%d bytes)", out_path, written)
        return TransferOutcome(COMPLETED, out_path, filename, written)
