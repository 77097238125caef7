from __future__ import annotations

import logging
from dataclasses import dataclass
from pathlib import Path
from typing import Any, Dict, List, Protocol, Sequence

from .config import ToolConfig
from .lib.workarea import WorkArea

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class BuildCtx:
    cfg: ToolConfig
    iso_path: Path
    output_dir: Path
    arch: str
    prefer: str | None
    work: WorkArea


class Step(Protocol):
    """A single stage of the build; records what it found into state."""

    step_id: str

    def run(self, ctx: BuildCtx, state: Dict[str, Any]) -> Dict[str, Any]:
        ...


@dataclass(frozen=True)
class PipelineResult:
    state: Dict[str, Any]
    ran_steps: List[str]


def run_pipeline(*, ctx: BuildCtx, state: Dict[str, Any], steps: Sequence[Step]) -> PipelineResult:
    """Run steps strictly in order; the first exception aborts the run."""

    ran: List[str] = []
    execution = state.setdefault("execution", {})
    execution["ran_steps"] = ran

    for step in steps:
        execution["current_step"] = step.step_id
        logger.debug("Running step %s", step.step_id)
        state = step.run(ctx, state)
        ran.append(step.step_id)

    execution["current_step"] = None
    return PipelineResult(state=state, ran_steps=ran)
