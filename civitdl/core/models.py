from __future__ import annotations
import re
from dataclasses import dataclass
from enum import Enum
from typing import Any, Dict, Optional, Tuple


def _norm(text: Any) -> str:
    return re.sub(r"[\s_\-]+", "", str(text or "")).lower()


class _Label(Enum):
    """Closed set parsed from catalog text; anything unrecognized is UNKNOWN."""

    @classmethod
    def parse(cls, text: Optional[str]):
        key = _norm(text)
        for member in cls:
            if key and _norm(member.value) == key:
                return member
        return cls.UNKNOWN  # type: ignore[attr-defined]


class ModelCategory(_Label):
    CHECKPOINT = "Checkpoint"
    MODEL = "Model"
    LORA = "LORA"
    LOCON = "LoCon"
    TEXTUAL_INVERSION = "TextualInversion"
    HYPERNETWORK = "Hypernetwork"
    AESTHETIC_GRADIENT = "AestheticGradient"
    POSES = "Poses"
    WILDCARDS = "Wildcards"
    UNKNOWN = "Unknown"


class ModelFormat(_Label):
    SAFETENSOR = "SafeTensor"
    PICKLETENSOR = "PickleTensor"
    OTHER = "Other"
    UNKNOWN = "Unknown"


class ResourceType(_Label):
    MODEL = "Model"
    PRUNED_MODEL = "PrunedModel"
    TRAINING_DATA = "TrainingData"
    ARCHIVE = "Archive"
    CONFIG = "Config"
    UNKNOWN = "Unknown"


# ---- wire records -----------------------------------------------------------
def _required(data: Dict[str, Any], key: str) -> Any:
    if not isinstance(data, dict):
        raise ValueError(f"expected an object, got {type(data).__name__}")
    if data.get(key) is None:
        raise KeyError(key)
    return data[key]

def _opt_float(v: Any) -> Optional[float]:
    if v is None or isinstance(v, bool):
        return None
    try:
        return float(v)
    except (TypeError, ValueError):
        return None


@dataclass(frozen=True)
class ResourceFile:
    id: int
    name: str = ""
    size_kb: Optional[float] = None
    resource_type: ResourceType = ResourceType.UNKNOWN
    format: Optional[ModelFormat] = None  # None: the catalog sent no format at all
    download_url: str = ""

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "ResourceFile":
        fid = int(_required(data, "id"))
        meta = data.get("metadata") or {}
        raw_fmt = data.get("format")
        if raw_fmt is None and isinstance(meta, dict):
            raw_fmt = meta.get("format")
        return cls(
            id=fid,
            name=str(data.get("name") or ""),
            size_kb=_opt_float(data.get("sizeKB")),
            resource_type=ResourceType.parse(data.get("type")),
            format=None if raw_fmt is None else ModelFormat.parse(raw_fmt),
            download_url=str(data.get("downloadUrl") or ""),
        )


@dataclass(frozen=True)
class ModelSummary:
    """The trimmed model record embedded in a version payload."""
    name: str = ""
    type: str = ""

    @property
    def category(self) -> ModelCategory:
        return ModelCategory.parse(self.type)


@dataclass(frozen=True)
class ModelVersion:
    id: int
    model_id: Optional[int] = None
    name: str = ""
    files: Tuple[ResourceFile, ...] = ()
    download_url: str = ""
    model: Optional[ModelSummary] = None
    base_model: Optional[str] = None
    created_at: Optional[str] = None

    @classmethod
    def from_dict(cls, data: Dict[str, Any], model_id: Optional[int] = None) -> "ModelVersion":
        vid = int(_required(data, "id"))
        mid = data.get("modelId", model_id)
        summary = data.get("model")
        return cls(
            id=vid,
            model_id=int(mid) if mid is not None else None,
            name=str(data.get("name") or ""),
            files=tuple(ResourceFile.from_dict(f) for f in (data.get("files") or [])),
            download_url=str(data.get("downloadUrl") or ""),
            model=ModelSummary(
                name=str(summary.get("name") or ""),
                type=str(summary.get("type") or ""),
            ) if isinstance(summary, dict) else None,
            base_model=data.get("baseModel"),
            created_at=data.get("createdAt"),
        )


@dataclass(frozen=True)
class Model:
    id: int
    name: str = ""
    type: str = ""
    versions: Tuple[ModelVersion, ...] = ()

    @property
    def category(self) -> ModelCategory:
        return ModelCategory.parse(self.type)

    @property
    def latest(self) -> Optional[ModelVersion]:
        return self.versions[0] if self.versions else None

    def find_version(self, version_id: str) -> Optional[ModelVersion]:
        wanted = str(version_id).strip()
        for v in self.versions:
            if str(v.id) == wanted:
                return v
        return None

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "Model":
        mid = int(_required(data, "id"))
        return cls(
            id=mid,
            name=str(data.get("name") or ""),
            type=str(data.get("type") or ""),
            versions=tuple(
                ModelVersion.from_dict(v, model_id=mid) for v in (data.get("modelVersions") or [])
            ),
        )

    def __str__(self) -> str:
        return f"Model {self.id}: {self.name} ({self.type or '?'})"
