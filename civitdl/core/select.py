# civitdl/core/select.py
from __future__ import annotations
import logging
from dataclasses import dataclass
from typing import Optional, Sequence

from .errors import NoFilesAvailable
from .models import ModelFormat, ResourceFile, ResourceType

logger = logging.getLogger(__name__)

DEFAULT_FORMAT = ModelFormat.SAFETENSOR
DEFAULT_RESOURCE_TYPE = ResourceType.PRUNED_MODEL

PRIMARY, ALT, FALLBACK = "primary", "alt", "fallback"


@dataclass(frozen=True)
class Preference:
    format: ModelFormat = DEFAULT_FORMAT
    resource_type: ResourceType = DEFAULT_RESOURCE_TYPE

    @classmethod
    def from_text(cls, fmt: Optional[str] = "", rtype: Optional[str] = "") -> "Preference":
        """Unset values take the defaults; set but unrecognized values become UNKNOWN."""
        return cls(
            format=ModelFormat.parse(fmt) if (fmt or "").strip() else DEFAULT_FORMAT,
            resource_type=ResourceType.parse(rtype) if (rtype or "").strip() else DEFAULT_RESOURCE_TYPE,
        )


@dataclass(frozen=True)
class Selection:
    file: ResourceFile
    tier: str


def choose(files: Sequence[ResourceFile], pref: Preference, version_id=None) -> Selection:
    """
    Three tiers, first hit wins:
    - primary:  format and type both match
    - alt:      format or type matches
    - fallback: first file, whatever it is
    Files without any format in the catalog only qualify for fallback.
    """
    if not files:
        raise NoFilesAvailable(version_id)

    typed = [f for f in files if f.format is not None]
    for f in typed:
        if f.format == pref.format and f.resource_type == pref.resource_type:
            return Selection(f, PRIMARY)
    for f in typed:
        if f.format == pref.format or f.resource_type == pref.resource_type:
            return Selection(f, ALT)
    return Selection(files[0], FALLBACK)


def select_file(files: Sequence[ResourceFile], pref: Preference, version_id=None) -> ResourceFile:
    sel = choose(files, pref, version_id)
    logger.debug("Version %s: picked %s (%s match, %s/%s)",
                 version_id, sel.file.name, sel.tier,
                 (sel.file.format or ModelFormat.UNKNOWN).value, sel.file.resource_type.value)
    return sel.file
