# civitdl/core/__init__.py
from .catalog import CatalogClient, API_BASE
from .config import Settings, load_cfg, save_cfg, load_settings, config_path
from .download import TransferEngine, TransferOutcome, COMPLETED, ALREADY_EXISTS
from .errors import (
    CivitdlError, FetchFailed, ParseFailed, NoFilesAvailable, VersionNotFound,
    CategoryResolutionFailed, PathResolutionError, FilenameUnavailable,
    ContentLengthUnavailable, LocalIOError,
)
from .http import make_session
from .models import Model, ModelVersion, ResourceFile, ModelCategory, ModelFormat, ResourceType
from .orchestrate import Orchestrator, FlowResult, RunReport, FAILED
from .paths import resolve_destination, resolve_version_category
from .progress import ProgressBoard, ProgressEvent
from .select import Preference, select_file
from .utils import human_size

__all__ = [
    "CatalogClient", "API_BASE",
    "Settings", "load_cfg", "save_cfg", "load_settings", "config_path",
    "TransferEngine", "TransferOutcome", "COMPLETED", "ALREADY_EXISTS", "FAILED",
    "CivitdlError", "FetchFailed", "ParseFailed", "NoFilesAvailable", "VersionNotFound",
    "CategoryResolutionFailed", "PathResolutionError", "FilenameUnavailable",
    "ContentLengthUnavailable", "LocalIOError",
    "make_session",
    "Model", "ModelVersion", "ResourceFile", "ModelCategory", "ModelFormat", "ResourceType",
    "Orchestrator", "FlowResult", "RunReport",
    "resolve_destination", "resolve_version_category",
    "ProgressBoard", "ProgressEvent",
    "Preference", "select_file",
    "human_size",
    "setup_logging",
]

# ---- simple logging toggle for the package ----
import logging

def setup_logging(verbose: bool = False) -> None:
    level = logging.DEBUG if verbose else logging.INFO
    logging.basicConfig(
        level=level,
        format="%(levelname)s %(name)s: %(message)s"
    )
    # quiet down noisy deps
    logging.getLogger("urllib3").setLevel(logging.WARNING)
    logging.getLogger("requests").setLevel(logging.WARNING)
