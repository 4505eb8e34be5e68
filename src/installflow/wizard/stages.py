"""Import stage plan: static, ordered stage definitions loaded from YAML."""

from __future__ import annotations

from collections.abc import Mapping
from dataclasses import dataclass
from importlib import resources
from pathlib import Path
from typing import Any

import yaml

from installflow.core.errors import PipelineError
from installflow.core.logging import get_logger
from installflow.wizard.retry import StageOutcome

_logger = get_logger(__name__)

OPERATIONS = frozenset(
    {
        "import_save_data",
        "import_migration_archive",
        "merge_save_data_presets",
        "merge_preserved_presets",
    }
)
PREDICATES = frozenset(
    {
        "import_enabled",
        "migration_import_enabled",
        "preserved_save_data_available",
        "restore_save_data",
    }
)
FEATURES = frozenset({"migration", "presets", "epic_login"})
REQUIRE_MODES = ("all", "any")


@dataclass(frozen=True)
class ImportStageDef:
    id: str
    operation: str
    message: str
    prompt: str
    feature: str | None = None
    enabled_when: tuple[str, ...] = ()
    after: tuple[str, ...] = ()
    require: str = "all"

    def is_active(
        self,
        flags: Mapping[str, bool],
        features: Mapping[str, bool],
        outcomes: Mapping[str, StageOutcome],
    ) -> bool:
        """Evaluate the activation predicate against known outcomes.

        Args:
            flags: Session predicates (see PREDICATES)
            features: Feature switches
            outcomes: Outcomes of the stages evaluated so far
        """
        if self.feature is not None and not features.get(self.feature, False):
            return False
        if not all(flags.get(name, False) for name in self.enabled_when):
            return False
        if not self.after:
            return True
        succeeded = [stage_id in outcomes and outcomes[stage_id].succeeded for stage_id in self.after]
        return all(succeeded) if self.require == "all" else any(succeeded)


@dataclass(frozen=True)
class StagePlan:
    name: str
    stages: tuple[ImportStageDef, ...]

    def __iter__(self):
        return iter(self.stages)

    def __len__(self) -> int:
        return len(self.stages)

    @property
    def ids(self) -> list[str]:
        return [stage.id for stage in self.stages]

    def get(self, stage_id: str) -> ImportStageDef:
        for stage in self.stages:
            if stage.id == stage_id:
                return stage
        raise KeyError(stage_id)


def _as_tuple(value: Any, field: str, stage_id: str) -> tuple[str, ...]:
    if value is None:
        return ()
    if isinstance(value, str):
        return (value,)
    if not isinstance(value, list):
        raise PipelineError(f"Stage '{stage_id}': '{field}' must be a list")
    return tuple(str(item) for item in value)


def parse_stage_plan(data: Any) -> StagePlan:
    """Validate a parsed YAML document and build the plan.

    Raises:
        PipelineError: If the plan is malformed
    """
    if not isinstance(data, dict) or "pipeline" not in data:
        raise PipelineError("Invalid stage plan: missing 'pipeline' key")

    pipeline = data["pipeline"] or {}
    raw_stages = pipeline.get("stages")
    if not isinstance(raw_stages, list) or not raw_stages:
        raise PipelineError("Stage plan must declare at least one stage")

    stages: list[ImportStageDef] = []
    seen: set[str] = set()
    for raw in raw_stages:
        if not isinstance(raw, dict) or not raw.get("id"):
            raise PipelineError("Every stage needs an 'id'")
        stage_id = str(raw["id"])
        if stage_id in seen:
            raise PipelineError(f"Duplicate stage id '{stage_id}'")

        operation = str(raw.get("operation", ""))
        if operation not in OPERATIONS:
            raise PipelineError(f"Stage '{stage_id}' uses unknown operation '{operation}'")

        feature = raw.get("feature")
        if feature is not None and feature not in FEATURES:
            raise PipelineError(f"Stage '{stage_id}' uses unknown feature '{feature}'")

        enabled_when = _as_tuple(raw.get("enabled_when"), "enabled_when", stage_id)
        for name in enabled_when:
            if name not in PREDICATES:
                raise PipelineError(f"Stage '{stage_id}' uses unknown predicate '{name}'")

        after = _as_tuple(raw.get("after"), "after", stage_id)
        for dep in after:
            if dep not in seen:
                raise PipelineError(f"Stage '{stage_id}' depends on unknown or later stage '{dep}'")

        require = str(raw.get("require", "all"))
        if require not in REQUIRE_MODES:
            raise PipelineError(f"Stage '{stage_id}': require must be 'all' or 'any'")

        for key in ("message", "prompt"):
            if not raw.get(key):
                raise PipelineError(f"Stage '{stage_id}' is missing '{key}'")

        stages.append(
            ImportStageDef(
                id=stage_id,
                operation=operation,
                message=str(raw["message"]),
                prompt=str(raw["prompt"]),
                feature=feature,
                enabled_when=enabled_when,
                after=after,
                require=require,
            )
        )
        seen.add(stage_id)

    return StagePlan(name=str(pipeline.get("name", "import")), stages=tuple(stages))


def load_stage_plan(path: Path | None = None) -> StagePlan:
    """Load the stage plan (the packaged default when path is None).

    Raises:
        PipelineError: If the file is missing or invalid
    """
    try:
        if path is None:
            text = (
                resources.files("installflow.wizard")
                .joinpath("definitions/import_stages.yaml")
                .read_text(encoding="utf-8")
            )
        else:
            if not path.exists():
                raise PipelineError(f"Stage plan file not found: {path}")
            text = path.read_text(encoding="utf-8")
        data = yaml.safe_load(text)
    except yaml.YAMLError as e:
        raise PipelineError(f"Invalid stage plan YAML: {e}") from e
    except OSError as e:
        raise PipelineError(f"Failed to read stage plan: {e}") from e

    plan = parse_stage_plan(data)
    _logger.debug(f"stage plan '{plan.name}': {', '.join(plan.ids)}")
    return plan
