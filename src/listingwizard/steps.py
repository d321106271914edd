"""Step controller.

Step descriptors come from YAML (packaged steps.yaml unless overridden via
wizard.steps_file). The controller tracks the current index; only
sequential go_next() is gated by validation, direct go_to() is not.
"""

from __future__ import annotations

from collections.abc import Callable
from dataclasses import dataclass
from enum import StrEnum
from importlib import resources
from pathlib import Path
from typing import Any

import yaml

from listingwizard.core.errors import NavigationError, StepDefinitionError
from listingwizard.core.logging import get_logger
from listingwizard.validation import ValidationResult

log = get_logger(__name__)


@dataclass(frozen=True)
class StepDescriptor:
    id: str
    title: str
    description: str = ""
    sections: tuple[str, ...] = ()
    day_picnic_title: str | None = None
    hidden_for_day_picnic: tuple[str, ...] = ()

    def title_for(self, day_picnic: bool) -> str:
        if day_picnic and self.day_picnic_title:
            return self.day_picnic_title
        return self.title

    def visible_sections(self, day_picnic: bool) -> tuple[str, ...]:
        if not day_picnic:
            return self.sections
        return tuple(s for s in self.sections if s not in self.hidden_for_day_picnic)


class StepStatus(StrEnum):
    COMPLETE = "complete"
    CURRENT = "current"
    UPCOMING = "upcoming"


@dataclass(frozen=True)
class StepTransition:
    """Outcome of a navigation request.

    moved is False when the request was a no-op (validation blocked, or
    already at a boundary). validation is set only for gated transitions.
    """

    moved: bool
    index: int
    validation: ValidationResult | None = None
    at_end: bool = False


def _str_tuple(value: Any, where: str) -> tuple[str, ...]:
    if value is None:
        return ()
    if not isinstance(value, list) or not all(isinstance(v, str) for v in value):
        raise StepDefinitionError(f"{where} must be a list of strings")
    return tuple(value)


def _parse_step(raw: Any, position: int) -> StepDescriptor:
    if not isinstance(raw, dict):
        raise StepDefinitionError(f"Step #{position} must be a mapping")

    step_id = raw.get("id")
    title = raw.get("title")
    if not isinstance(step_id, str) or not step_id:
        raise StepDefinitionError(f"Step #{position} is missing 'id'")
    if not isinstance(title, str) or not title:
        raise StepDefinitionError(f"Step '{step_id}' is missing 'title'")

    dp_title = raw.get("day_picnic_title")
    if dp_title is not None and not isinstance(dp_title, str):
        raise StepDefinitionError(f"Step '{step_id}': day_picnic_title must be a string")

    return StepDescriptor(
        id=step_id,
        title=title,
        description=str(raw.get("description") or ""),
        sections=_str_tuple(raw.get("sections"), f"Step '{step_id}' sections"),
        day_picnic_title=dp_title,
        hidden_for_day_picnic=_str_tuple(
            raw.get("hidden_for_day_picnic"), f"Step '{step_id}' hidden_for_day_picnic"
        ),
    )


def parse_step_definitions(data: Any) -> list[StepDescriptor]:
    """Validate a loaded YAML document and build step descriptors.

    Raises:
        StepDefinitionError: If the structure is invalid
    """
    if not isinstance(data, dict):
        raise StepDefinitionError("Step definition must be a dictionary")
    if "wizard" not in data or not isinstance(data["wizard"], dict):
        raise StepDefinitionError("Missing 'wizard' key in definition")

    raw_steps = data["wizard"].get("steps")
    if not isinstance(raw_steps, list) or not raw_steps:
        raise StepDefinitionError("Wizard must have at least one step")

    steps = [_parse_step(raw, i) for i, raw in enumerate(raw_steps, start=1)]

    seen: set[str] = set()
    for s in steps:
        if s.id in seen:
            raise StepDefinitionError(f"Duplicate step id: '{s.id}'")
        seen.add(s.id)
    return steps


def load_step_definitions(path: Path | None = None) -> list[StepDescriptor]:
    """Load step descriptors from YAML.

    Args:
        path: Custom steps file; the packaged steps.yaml when None

    Raises:
        StepDefinitionError: If file not found or invalid
    """
    try:
        if path is None:
            text = resources.files("listingwizard").joinpath("steps.yaml").read_text("utf-8")
            origin = "<packaged steps.yaml>"
        else:
            if not path.exists():
                raise StepDefinitionError(
                    f"Steps file not found: {path}",
                    "Check the wizard.steps_file setting",
                )
            text = path.read_text(encoding="utf-8")
            origin = str(path)
        data = yaml.safe_load(text)
    except yaml.YAMLError as e:
        raise StepDefinitionError(f"Invalid YAML: {e}") from e

    steps = parse_step_definitions(data)
    log.debug(f"Loaded {len(steps)} steps from {origin}")
    return steps


class StepController:
    """Current step index plus forward/back/jump transitions.

    Args:
        steps: Ordered step descriptors
        validate: Callback validating the document partition of a step id
    """

    def __init__(
        self,
        steps: list[StepDescriptor],
        validate: Callable[[str], ValidationResult],
    ) -> None:
        if not steps:
            raise StepDefinitionError("Wizard must have at least one step")
        self._steps = list(steps)
        self._validate = validate
        self._index = 0
        self._passed: set[str] = set()

    @property
    def steps(self) -> list[StepDescriptor]:
        return list(self._steps)

    @property
    def current_index(self) -> int:
        return self._index

    @property
    def current(self) -> StepDescriptor:
        return self._steps[self._index]

    @property
    def is_last(self) -> bool:
        return self._index == len(self._steps) - 1

    @property
    def progress_percent(self) -> float:
        return (self._index + 1) / len(self._steps) * 100

    @property
    def passed_steps(self) -> frozenset[str]:
        """Ids of steps that passed validation on a gated go_next()."""
        return frozenset(self._passed)

    def index_of(self, step_id: str) -> int:
        for i, s in enumerate(self._steps):
            if s.id == step_id:
                return i
        raise KeyError(step_id)

    def status_of(self, index: int) -> StepStatus:
        if index < self._index:
            return StepStatus.COMPLETE
        if index == self._index:
            return StepStatus.CURRENT
        return StepStatus.UPCOMING

    def go_next(self) -> StepTransition:
        """Advance if the current step validates.

        On the last step this is a no-op reporting at_end; submission is a
        separate action.
        """
        if self.is_last:
            return StepTransition(moved=False, index=self._index, at_end=True)

        result = self._validate(self.current.id)
        if not result.ok:
            self._passed.discard(self.current.id)
            log.verbose(f"Step '{self.current.id}' blocked: {result.reason}")
            return StepTransition(moved=False, index=self._index, validation=result)

        self._passed.add(self.current.id)
        self._index += 1
        return StepTransition(
            moved=True, index=self._index, validation=result, at_end=self.is_last
        )

    def go_previous(self) -> StepTransition:
        if self._index == 0:
            return StepTransition(moved=False, index=0)
        self._index -= 1
        return StepTransition(moved=True, index=self._index)

    def go_to(self, index: int) -> StepTransition:
        """Jump directly to a step (sidebar navigation). Not validated."""
        if not 0 <= index < len(self._steps):
            raise NavigationError(index, len(self._steps))
        moved = index != self._index
        self._index = index
        return StepTransition(moved=moved, index=index, at_end=self.is_last)
