"""Per-search JSON records: which stages ran, how long they took, what came back."""

import dataclasses
import enum
import uuid
from datetime import UTC, datetime
from pathlib import Path
from typing import Any

from pydantic import BaseModel

from cacaw_search.data import AggregatedResponse

# How many ranked results are summarized in each record.
TOP_RESULTS = 5


class StageRecord(BaseModel):
    """One step of a search (cache lookup, one adapter call, ranking...)."""

    stage: str
    component: str
    input: Any = None
    output: Any = None
    error: str | None = None
    timestamp: str = ""
    duration_seconds: float = 0.0


class ResultSummary(BaseModel):
    id: str
    source_name: str
    title: str
    width: int
    height: int


class RunRecord(BaseModel):
    """Everything recorded about one aggregated search."""

    run_id: str
    query: dict[str, Any]
    started_at: str
    completed_at: str | None = None
    stages: list[StageRecord] = []
    final_result_count: int = 0
    served_from_cache: bool = False
    elapsed_millis: int | None = None
    contributing_sources: list[str] = []
    per_source_errors: dict[str, str] = {}
    top_results: list[ResultSummary] = []


def _to_jsonable(obj: Any) -> Any:
    if dataclasses.is_dataclass(obj) and not isinstance(obj, type):
        return {f.name: _to_jsonable(getattr(obj, f.name)) for f in dataclasses.fields(obj)}
    if isinstance(obj, BaseModel):
        return obj.model_dump(mode="json")
    if isinstance(obj, enum.Enum):
        return obj.value
    if isinstance(obj, dict):
        return {str(k): _to_jsonable(v) for k, v in obj.items()}
    if isinstance(obj, (set, frozenset)):
        return sorted(_to_jsonable(v) for v in obj)
    if isinstance(obj, (list, tuple)):
        return [_to_jsonable(v) for v in obj]
    if isinstance(obj, Path):
        return str(obj)
    return obj


def _now() -> str:
    return datetime.now(tz=UTC).isoformat()


class RunLogger:
    """Collects stage records for the search in progress and writes them out.

    A logger tracks a single search at a time. With ``enabled=False`` every
    method does nothing.

    Args:
        log_dir: Directory that receives one ``search_*.json`` per search.
        enabled: Whether anything is recorded.
    """

    def __init__(self, log_dir: Path, *, enabled: bool = True) -> None:
        self._log_dir = log_dir
        self._enabled = enabled
        self._record: RunRecord | None = None
        self._last_log_path: Path | None = None

    @property
    def enabled(self) -> bool:
        return self._enabled

    @property
    def last_log_path(self) -> Path | None:
        """File written by the most recent ``finish_run``."""
        return self._last_log_path

    def start_run(self, query: Any) -> None:
        if not self._enabled:
            return
        self._record = RunRecord(
            run_id=uuid.uuid4().hex,
            query=_to_jsonable(query) or {},
            started_at=_now(),
        )

    def log_stage(
        self,
        stage: str,
        component: str,
        input_data: Any,
        output_data: Any,
        duration_seconds: float,
        error: str | None = None,
    ) -> None:
        """Append a stage to the current search; ignored when none is in progress.

        Args:
            stage: "cache_lookup", "search", "fallback", "deduplication" or "ranking".
            component: Adapter name, or the class doing the work.
            input_data: What the stage was given.
            output_data: What it produced (None when it failed).
            duration_seconds: Wall-clock time spent.
            error: Failure description, when the stage failed.
        """
        if self._record is None:
            return
        self._record.stages.append(
            StageRecord(
                stage=stage,
                component=component,
                input=_to_jsonable(input_data),
                output=_to_jsonable(output_data),
                error=error,
                timestamp=_now(),
                duration_seconds=round(duration_seconds, 4),
            )
        )

    def finish_run(self, response: AggregatedResponse) -> Path | None:
        """Close the current search with its response and write the record.

        Returns:
            The JSON file written, or None when disabled or no search was started.
        """
        record = self._record
        if record is None:
            return None

        record.completed_at = _now()
        record.final_result_count = len(response.results)
        record.served_from_cache = response.served_from_cache
        record.elapsed_millis = response.elapsed_millis
        record.contributing_sources = sorted(response.contributing_sources)
        record.per_source_errors = dict(response.per_source_errors)
        record.top_results = [
            ResultSummary(
                id=r.id,
                source_name=r.source_name,
                title=r.title,
                width=r.width,
                height=r.height,
            )
            for r in response.results[:TOP_RESULTS]
        ]

        self._log_dir.mkdir(parents=True, exist_ok=True)
        stamp = datetime.fromisoformat(record.started_at).strftime("%Y-%m-%dT%H-%M-%S")
        path = self._log_dir / f"search_{stamp}_{record.run_id[:8]}.json"
        path.write_text(record.model_dump_json(indent=2))

        self._last_log_path = path
        self._record = None
        return path
