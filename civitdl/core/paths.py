# civitdl/core/paths.py
from __future__ import annotations
import logging
from pathlib import Path
from typing import Dict, Union

from .errors import CategoryResolutionFailed, CivitdlError, PathResolutionError
from .models import ModelCategory

logger = logging.getLogger(__name__)

# Stable Diffusion web UI layout, relative to the base directory
CATEGORY_DIRS: Dict[ModelCategory, str] = {
    ModelCategory.MODEL:              "models/Stable-diffusion",
    ModelCategory.CHECKPOINT:         "models/Stable-diffusion",
    ModelCategory.LORA:               "models/Lora",
    ModelCategory.LOCON:              "models/Lora",
    ModelCategory.TEXTUAL_INVERSION:  "embeddings",
    ModelCategory.HYPERNETWORK:       "models/hypernetworks",
    ModelCategory.AESTHETIC_GRADIENT: "models/aesthetic_embeddings",
    ModelCategory.POSES:              "models/poses",
    ModelCategory.WILDCARDS:          "downloads/wildcards",
    ModelCategory.UNKNOWN:            "downloads",
}


def category_subdir(category: ModelCategory) -> str:
    return CATEGORY_DIRS.get(category, CATEGORY_DIRS[ModelCategory.UNKNOWN])


def resolve_destination(base: Union[Path, str], category: ModelCategory) -> Path:
    target = Path(base).expanduser() / category_subdir(category)
    try:
        return target.resolve()
    except (OSError, RuntimeError) as e:  # symlink loops, unreadable components
        raise PathResolutionError(target, str(e)) from e


def resolve_version_category(catalog, version_id) -> ModelCategory:
    """Look the version up again; only its embedded model summary carries the type."""
    try:
        version = catalog.get_model_version(version_id)
    except CivitdlError as e:
        raise CategoryResolutionFailed(version_id, e) from e
    if version.model is None:
        logger.warning("Version %s came back without a model summary; treating it as Unknown", version_id)
        return ModelCategory.UNKNOWN
    category = version.model.category
    if category is ModelCategory.UNKNOWN:
        logger.warning("Unrecognized model type %r for version %s", version.model.type, version_id)
    return category
