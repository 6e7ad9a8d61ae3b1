from __future__ import annotations
import math, re, urllib.parse
from pathlib import Path
from typing import Mapping, Optional

def human_size(n: Optional[int]) -> str:
    if not n or n <= 0: return "?"
    units = ["B","KB","MB","GB","TB"]
    i = min(int(math.floor(math.log(n, 1024))), len(units) - 1)
    return f"{n/(1024**i):.2f} {units[i]}"

def safe_filename(name: str) -> str:
    return re.sub(r'[\\/*?:"<>|]+', "_", (name or "")).strip() or "file"

def filename_from_disposition(value: Optional[str]) -> Optional[str]:
    """attachment; filename="foo.safetensors" -> foo.safetensors"""
    if not value or "filename=" not in value: return None
    raw = value.split("filename=", 1)[1].split(";", 1)[0].strip().strip('"').strip("'")
    raw = urllib.parse.unquote(raw)
    if not raw: return None
    return safe_filename(raw)

def content_length(headers: Mapping[str, str]) -> Optional[int]:
    raw = (headers.get("Content-Length") or "").strip()
    return int(raw) if raw.isdigit() else None

def size_matches_kb(path: Path, size_kb: Optional[float]) -> bool:
    """Existing file counts as the same download when its size in KB equals size_kb."""
    if size_kb is None: return False
    return path.stat().st_size / 1024 == size_kb
