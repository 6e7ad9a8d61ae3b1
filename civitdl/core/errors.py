# civitdl/core/errors.py
from __future__ import annotations
from pathlib import Path
from typing import Optional, Union


class CivitdlError(Exception):
    """Base class for every failure a single download flow can run into."""


class FetchFailed(CivitdlError):
    def __init__(self, url: str, reason: str = ""):
        self.url = url
        self.reason = reason
        msg = f"GET {url or '<no url>'} failed"
        super().__init__(f"{msg}: {reason}" if reason else msg)


class ParseFailed(CivitdlError):
    def __init__(self, url: str, reason: str = ""):
        self.url = url
        self.reason = reason
        super().__init__(f"Unexpected response from {url}: {reason}")


class NoFilesAvailable(CivitdlError):
    def __init__(self, version_id: Optional[Union[int, str]] = None):
        self.version_id = version_id
        super().__init__(f"Model version {version_id} has no files to download")


class VersionNotFound(CivitdlError):
    def __init__(self, model_id: Union[int, str], override_id: Optional[str] = None):
        self.model_id = model_id
        self.override_id = override_id
        if override_id is None:
            super().__init__(f"Model {model_id} has no versions")
        else:
            super().__init__(f"Model {model_id} has no version with id {override_id}")


class CategoryResolutionFailed(CivitdlError):
    def __init__(self, version_id: Union[int, str], cause: Optional[BaseException] = None):
        self.version_id = version_id
        self.cause = cause
        msg = f"Could not resolve the category of model version {version_id}"
        super().__init__(f"{msg}: {cause}" if cause else msg)


class PathResolutionError(CivitdlError):
    def __init__(self, path: Union[Path, str], reason: str = ""):
        self.path = path
        self.reason = reason
        super().__init__(f"Cannot resolve destination {path}: {reason}")


class FilenameUnavailable(CivitdlError):
    def __init__(self, url: str):
        self.url = url
        super().__init__(f"No Content-Disposition filename in response from {url}")


class ContentLengthUnavailable(CivitdlError):
    def __init__(self, url: str):
        self.url = url
        super().__init__(f"No usable Content-Length in response from {url}")


class LocalIOError(CivitdlError):
    """Creating or writing the destination file failed (partial file is kept)."""

    def __init__(self, path: Union[Path, str], reason: str = ""):
        self.path = path
        self.reason = reason
        super().__init__(f"I/O error on {path}: {reason}")
