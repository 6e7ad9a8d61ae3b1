# civitdl/core/progress.py
from __future__ import annotations
import threading
from dataclasses import dataclass
from typing import Callable, Dict, List, Tuple


@dataclass(frozen=True)
class ProgressEvent:
    label: str
    downloaded: int
    total: int
    finished: bool = False


Listener = Callable[[ProgressEvent], None]


class ProgressTrack:
    """One transfer's counter. Only ever moves forward and never passes total."""

    def __init__(self, board: "ProgressBoard", label: str, total: int):
        self._board = board
        self._lock = threading.Lock()
        self.label = label
        self.total = max(int(total), 0)
        self.downloaded = 0
        self.finished = False

    def advance(self, n: int) -> int:
        with self._lock:
            self.downloaded = min(self.downloaded + max(n, 0), self.total)
            ev = ProgressEvent(self.label, self.downloaded, self.total)
        self._board._emit(ev)
        return ev.downloaded

    def finish(self) -> None:
        with self._lock:
            if self.finished:
                return
            self.finished = True
            ev = ProgressEvent(self.label, self.downloaded, self.total, finished=True)
        self._board._emit(ev)


class ProgressBoard:
    """
    Shared registry of per-transfer tracks. Safe to use from worker threads;
    listeners are called on the thread that made the update.
    """

    def __init__(self) -> None:
        self._lock = threading.Lock()
        self._tracks: Dict[str, ProgressTrack] = {}
        self._listeners: List[Listener] = []

    def subscribe(self, listener: Listener) -> None:
        with self._lock:
            self._listeners.append(listener)

    def unsubscribe(self, listener: Listener) -> None:
        with self._lock:
            if listener in self._listeners:
                self._listeners.remove(listener)

    def track(self, label: str, total: int) -> ProgressTrack:
        with self._lock:
            key, n = label, 1
            while key in self._tracks:
                n += 1
                key = f"{label} ({n})"
            t = ProgressTrack(self, key, total)
            self._tracks[key] = t
        self._emit(ProgressEvent(key, 0, t.total))
        return t

    def snapshot(self) -> Dict[str, Tuple[int, int]]:
        with self._lock:
            tracks = list(self._tracks.values())
        return {t.label: (t.downloaded, t.total) for t in tracks}

    def _emit(self, ev: ProgressEvent) -> None:
        with self._lock:
            listeners = list(self._listeners)
        for cb in listeners:
            cb(ev)
