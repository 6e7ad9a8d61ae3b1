# civitdl/core/orchestrate.py
from __future__ import annotations
import logging
from concurrent.futures import ThreadPoolExecutor
from dataclasses import dataclass, field
from pathlib import Path
from typing import List, Optional, Sequence, Tuple, Union

from .catalog import CatalogClient
from .download import ALREADY_EXISTS, COMPLETED, TransferEngine
from .errors import CivitdlError, VersionNotFound
from .models import Model, ModelVersion
from .paths import resolve_destination, resolve_version_category
from .select import Preference, select_file

logger = logging.getLogger(__name__)

FAILED = "failed"

# where a flow stopped
STAGE_FETCH_MODEL = "fetch-model"
STAGE_SELECT_VERSION = "select-version"
STAGE_CATEGORY = "category"
STAGE_RESOLVE_PATH = "resolve-path"
STAGE_SELECT = "select"
STAGE_TRANSFER = "transfer"


@dataclass
class FlowResult:
    model_id: str
    version_id: Optional[str]
    status: str
    stage: str
    path: Optional[Path] = None
    filename: Optional[str] = None
    bytes_written: int = 0
    error: Optional[CivitdlError] = None

    @property
    def ok(self) -> bool:
        return self.status != FAILED


@dataclass
class RunReport:
    results: List[FlowResult] = field(default_factory=list)

    @property
    def completed(self) -> List[FlowResult]:
        return [r for r in self.results if r.status == COMPLETED]

    @property
    def skipped(self) -> List[FlowResult]:
        return [r for r in self.results if r.status == ALREADY_EXISTS]

    @property
    def failed(self) -> List[FlowResult]:
        return [r for r in self.results if r.status == FAILED]

    @property
    def ok(self) -> bool:
        return not self.failed


class Orchestrator:
    """
    fetch model(s) -> pick version(s) -> per version: category -> path -> file -> transfer.
    Every model id and every version is its own unit: a failure is recorded in
    the report and never stops the siblings.
    """

    def __init__(self, catalog: CatalogClient, engine: TransferEngine,
                 base_dir: Union[Path, str], preference: Optional[Preference] = None,
                 max_concurrent: int = 4):
        self.catalog = catalog
        self.engine = engine
        self.base_dir = Path(base_dir)
        self.preference = preference or Preference()
        self.max_concurrent = max(1, int(max_concurrent))

    def run(self, model_ids: Sequence[Union[int, str]], all_versions: bool = False,
            override_id: Optional[str] = None) -> RunReport:
        ids = [str(i).strip() for i in model_ids if str(i).strip()]
        if not ids:
            return RunReport()
        if override_id:
            return RunReport([self._run_override(ids, str(override_id).strip())])
        return RunReport(self._run_batch(ids, all_versions))

    # ---- modes ---------------------------------------------------------------
    def _run_override(self, ids: List[str], override_id: str) -> FlowResult:
        model_id = ids[0]
        if len(ids) > 1:
            logger.warning("Version override given; ignoring model ids %s", ", ".join(ids[1:]))
        try:
            model = self.catalog.get_model(model_id)
        except CivitdlError as e:
            return self._failed(model_id, None, STAGE_FETCH_MODEL, e)
        version = model.find_version(override_id)
        if version is None:
            return self._failed(model_id, override_id, STAGE_SELECT_VERSION,
                                VersionNotFound(model_id, override_id))
        return self.process_version(model_id, version)

    def _run_batch(self, ids: List[str], all_versions: bool) -> List[FlowResult]:
        # one slot per unit, in request order: a finished result or a version to run
        slots: List[Union[FlowResult, Tuple[str, ModelVersion]]] = []

        for model_id, fetched in zip(ids, self._fetch_models(ids)):
            if isinstance(fetched, CivitdlError):
                slots.append(self._failed(model_id, None, STAGE_FETCH_MODEL, fetched))
                continue
            if not fetched.versions:
                slots.append(self._failed(model_id, None, STAGE_SELECT_VERSION,
                                          VersionNotFound(model_id)))
                continue
            versions = fetched.versions if all_versions else fetched.versions[:1]
            logger.info("%s: %d version(s) queued", fetched, len(versions))
            slots.extend((model_id, v) for v in versions)

        if all(isinstance(s, FlowResult) for s in slots):
            return list(slots)  # type: ignore[arg-type]
        with ThreadPoolExecutor(max_workers=self.max_concurrent,
                                thread_name_prefix="civitdl-dl") as pool:
            pending = [s if isinstance(s, FlowResult) else pool.submit(self.process_version, *s)
                       for s in slots]
            return [p if isinstance(p, FlowResult) else p.result() for p in pending]

    def _fetch_models(self, ids: List[str]) -> List[Union[Model, CivitdlError]]:
        def fetch(model_id: str) -> Union[Model, CivitdlError]:
            try:
                return self.catalog.get_model(model_id)
            except CivitdlError as e:
                return e

        with ThreadPoolExecutor(max_workers=self.max_concurrent,
                                thread_name_prefix="civitdl-meta") as pool:
            return list(pool.map(fetch, ids))

    # ---- one version ---------------------------------------------------------
    def process_version(self, model_id: Union[int, str], version: ModelVersion) -> FlowResult:
        model_id, version_id = str(model_id), str(version.id)
        stage = STAGE_CATEGORY
        try:
            category = resolve_version_category(self.catalog, version.id)
            stage = STAGE_RESOLVE_PATH
            dest = resolve_destination(self.base_dir, category)
            stage = STAGE_SELECT
            chosen = select_file(version.files, self.preference, version_id=version.id)
            stage = STAGE_TRANSFER
            url = chosen.download_url or version.download_url
            outcome = self.engine.transfer(url, dest, chosen, label=chosen.name or None)
        except CivitdlError as e:
            return self._failed(model_id, version_id, stage, e)

        res = FlowResult(model_id, version_id, outcome.status, stage,
                         path=outcome.path, filename=outcome.filename,
                         bytes_written=outcome.bytes_written)
        if outcome.status == ALREADY_EXISTS:
            logger.info("Model %s version %s: %s already present, skipped", model_id, version_id, outcome.path)
        else:
            logger.info("Model %s version %s: saved %s", model_id, version_id, outcome.path)
        return res

    def _failed(self, model_id: str, version_id: Optional[str], stage: str, err: CivitdlError) -> FlowResult:
        logger.error("Model %s version %s failed at %s: %s", model_id, version_id or "-", stage, err)
        return FlowResult(model_id, version_id, FAILED, stage, error=err)
