"""
Wizard state machine for skill selection.

`transition(state, event, matrix)` is the only way the wizard moves: it
copies the state, applies one user event for the current step and returns
the copy. Rendering and prompting live in `views` and `runner`.
"""

import logging
from dataclasses import dataclass, field, replace
from enum import Enum
from typing import Callable, Dict, List, Optional, Sequence, Set, Tuple, Union

from pydantic import BaseModel, Field

from ..matrix.dependents import collect_all_dependents
from ..matrix.errors import WizardStateError
from ..matrix.models import ResolvedStack, SelectionValidation, SkillsMatrix
from ..matrix.resolver import (
    ResolveOptions,
    get_subcategories,
    is_disabled,
    resolve_alias,
    validate_selection,
)

logger = logging.getLogger(__name__)


class WizardStep(str, Enum):
    """Steps of the selection wizard."""

    APPROACH = "approach"
    STACK = "stack"
    STACK_REVIEW = "stack_review"
    CATEGORY = "category"
    SUBCATEGORY = "subcategory"
    SKILL = "skill"
    CONFIRM = "confirm"
    COMPLETE = "complete"
    CANCELLED = "cancelled"


TERMINAL_STEPS = frozenset({WizardStep.COMPLETE, WizardStep.CANCELLED})

# Values carried by Select events at fixed-choice steps
APPROACH_STACK = "stack"
APPROACH_SCRATCH = "scratch"
REVIEW_EDIT = "edit"
CONFIRM_SELECTION = "confirm"


# =============================================================================
# Events
# =============================================================================


@dataclass(frozen=True)
class Select:
    """User picked an option; `value` is a choice value, category id or skill id."""

    value: str


@dataclass(frozen=True)
class Back:
    """User chose "Back"."""


@dataclass(frozen=True)
class Continue:
    """User chose "Continue" from the category list."""


@dataclass(frozen=True)
class ToggleExpertMode:
    """User toggled expert mode."""


@dataclass(frozen=True)
class ConfirmRemoval:
    """Answer to a pending removal that would also remove dependents."""

    accepted: bool


@dataclass(frozen=True)
class Cancel:
    """User aborted the prompt."""


WizardEvent = Union[Select, Back, Continue, ToggleExpertMode, ConfirmRemoval, Cancel]


# =============================================================================
# State
# =============================================================================


class WizardResult(BaseModel):
    """Outcome of a confirmed wizard session."""

    selected_skills: List[str] = Field(default_factory=list)
    selected_stack: Optional[ResolvedStack] = None
    validation: SelectionValidation


@dataclass(frozen=True)
class PendingRemoval:
    """A deselection waiting for the user to accept removing its dependents."""

    skill_id: str
    dependents: Tuple[str, ...]


@dataclass
class WizardState:
    """Everything the wizard knows about one session."""

    step: WizardStep = WizardStep.APPROACH
    selected_skills: List[str] = field(default_factory=list)
    history: List[WizardStep] = field(default_factory=list)
    current_top_category: Optional[str] = None
    current_subcategory: Optional[str] = None
    visited_categories: Set[str] = field(default_factory=set)
    selected_stack: Optional[ResolvedStack] = None
    expert_mode: bool = False
    last_selected_category: Optional[str] = None
    last_selected_subcategory: Optional[str] = None
    last_selected_skill: Optional[str] = None
    pending_removal: Optional[PendingRemoval] = None
    result: Optional[WizardResult] = None

    def copy(self) -> "WizardState":
        """Copy with independent selection, history and visited collections."""
        return replace(
            self,
            selected_skills=list(self.selected_skills),
            history=list(self.history),
            visited_categories=set(self.visited_categories),
        )

    @property
    def finished(self) -> bool:
        return self.step in TERMINAL_STEPS

    @property
    def resolve_options(self) -> ResolveOptions:
        return ResolveOptions(expert_mode=self.expert_mode)

    def push_history(self) -> None:
        self.history.append(self.step)

    def pop_history(self, fallback: WizardStep) -> WizardStep:
        return self.history.pop() if self.history else fallback


def create_initial_state(
    matrix: SkillsMatrix,
    initial_skills: Optional[Sequence[str]] = None,
    has_local_skills: bool = False,
) -> WizardState:
    """
    Build the starting state for a session.

    Args:
        matrix: The skills matrix
        initial_skills: Existing selection to edit; aliases are resolved,
            duplicates and unknown ids dropped
        has_local_skills: Start in expert mode, since local skills declare
            no relationships

    Returns:
        WizardState at APPROACH, or at CATEGORY when editing a selection
    """
    state = WizardState(expert_mode=has_local_skills)

    if initial_skills:
        for reference in initial_skills:
            skill_id = resolve_alias(reference, matrix)
            if skill_id not in matrix.skills:
                logger.warning("Ignoring unknown skill in initial selection: %s", reference)
                continue
            if skill_id not in state.selected_skills:
                state.selected_skills.append(skill_id)

        if state.selected_skills:
            state.history.append(WizardStep.APPROACH)
            state.step = WizardStep.CATEGORY

    return state


# =============================================================================
# Step handlers
# =============================================================================


def _handle_approach(state: WizardState, event: WizardEvent, matrix: SkillsMatrix) -> None:
    if isinstance(event, ToggleExpertMode):
        state.expert_mode = not state.expert_mode
    elif isinstance(event, Select) and event.value == APPROACH_STACK:
        state.push_history()
        state.step = WizardStep.STACK
    elif isinstance(event, Select) and event.value == APPROACH_SCRATCH:
        state.push_history()
        state.step = WizardStep.CATEGORY


def _handle_stack(state: WizardState, event: WizardEvent, matrix: SkillsMatrix) -> None:
    if isinstance(event, Back):
        state.step = state.pop_history(WizardStep.APPROACH)
    elif isinstance(event, Select):
        stack = matrix.get_stack(event.value)
        if stack is None:
            logger.debug("Unknown stack selected: %s", event.value)
            return
        state.selected_stack = stack
        state.selected_skills = list(dict.fromkeys(stack.all_skill_ids))
        state.push_history()
        state.step = WizardStep.STACK_REVIEW


def _handle_stack_review(state: WizardState, event: WizardEvent, matrix: SkillsMatrix) -> None:
    if state.selected_stack is None:
        raise WizardStateError(WizardStep.STACK_REVIEW.value, "selected_stack")

    if isinstance(event, Back):
        # Leaving the review discards the preset entirely
        state.selected_stack = None
        state.selected_skills = []
        state.step = state.pop_history(WizardStep.STACK)
    elif isinstance(event, Select) and event.value == REVIEW_EDIT:
        state.push_history()
        state.step = WizardStep.CATEGORY
    elif isinstance(event, Select) and event.value == CONFIRM_SELECTION:
        state.push_history()
        state.step = WizardStep.CONFIRM


def _handle_category(state: WizardState, event: WizardEvent, matrix: SkillsMatrix) -> None:
    if isinstance(event, Back):
        state.step = state.pop_history(WizardStep.APPROACH)
    elif isinstance(event, Continue):
        if not state.selected_skills:
            return
        state.push_history()
        state.step = WizardStep.CONFIRM
    elif isinstance(event, Select):
        category = matrix.categories.get(event.value)
        if category is None or category.parent:
            logger.debug("Ignoring selection of non top-level category: %s", event.value)
            return

        state.last_selected_category = event.value
        if get_subcategories(event.value, matrix):
            state.push_history()
            state.current_top_category = event.value
            state.step = WizardStep.SUBCATEGORY
        else:
            logger.info("%s has no subcategories", category.name)


def _handle_subcategory(state: WizardState, event: WizardEvent, matrix: SkillsMatrix) -> None:
    top_category = state.current_top_category
    if top_category is None:
        raise WizardStateError(WizardStep.SUBCATEGORY.value, "current_top_category")

    if isinstance(event, Back):
        state.visited_categories.add(top_category)
        state.current_top_category = None
        state.last_selected_subcategory = None
        state.step = state.pop_history(WizardStep.CATEGORY)
    elif isinstance(event, Select):
        if event.value not in get_subcategories(top_category, matrix):
            logger.debug("Ignoring unknown subcategory: %s", event.value)
            return
        state.last_selected_subcategory = event.value
        state.current_subcategory = event.value
        state.step = WizardStep.SKILL


def _handle_skill(state: WizardState, event: WizardEvent, matrix: SkillsMatrix) -> None:
    subcategory_id = state.current_subcategory
    if subcategory_id is None:
        raise WizardStateError(WizardStep.SKILL.value, "current_subcategory")

    if isinstance(event, Back):
        state.current_subcategory = None
        state.last_selected_skill = None
        state.step = WizardStep.SUBCATEGORY
        return

    if not isinstance(event, Select):
        return

    skill_id = resolve_alias(event.value, matrix)
    skill = matrix.skills.get(skill_id)
    if skill is None or skill.category != subcategory_id:
        logger.debug("Ignoring skill outside %s: %s", subcategory_id, event.value)
        return

    state.last_selected_skill = skill_id

    if is_disabled(skill_id, state.selected_skills, matrix, state.resolve_options):
        return

    if skill_id in state.selected_skills:
        dependents = (
            []
            if state.expert_mode
            else collect_all_dependents(skill_id, state.selected_skills, matrix)
        )
        if dependents:
            state.pending_removal = PendingRemoval(skill_id, tuple(dependents))
        else:
            state.selected_skills.remove(skill_id)
        return

    category = matrix.categories.get(skill.category)
    exclusive = category.exclusive if category is not None else skill.category_exclusive
    if exclusive:
        state.selected_skills = [
            s
            for s in state.selected_skills
            if s not in matrix.skills or matrix.skills[s].category != skill.category
        ]
    state.selected_skills.append(skill_id)


def _handle_confirm(state: WizardState, event: WizardEvent, matrix: SkillsMatrix) -> None:
    if isinstance(event, Back):
        # Confirm is reached from several paths; always return to the category list
        state.step = WizardStep.CATEGORY
    elif isinstance(event, Select) and event.value == CONFIRM_SELECTION:
        validation = validate_selection(state.selected_skills, matrix)
        if not validation.valid:
            return
        state.result = WizardResult(
            selected_skills=list(state.selected_skills),
            selected_stack=state.selected_stack,
            validation=validation,
        )
        state.step = WizardStep.COMPLETE


def _resolve_pending_removal(state: WizardState, accepted: bool) -> None:
    pending = state.pending_removal
    state.pending_removal = None
    if pending is None or not accepted:
        return

    removed = {pending.skill_id, *pending.dependents}
    state.selected_skills = [s for s in state.selected_skills if s not in removed]


_Handler = Callable[[WizardState, WizardEvent, SkillsMatrix], None]

_HANDLERS: Dict[WizardStep, _Handler] = {
    WizardStep.APPROACH: _handle_approach,
    WizardStep.STACK: _handle_stack,
    WizardStep.STACK_REVIEW: _handle_stack_review,
    WizardStep.CATEGORY: _handle_category,
    WizardStep.SUBCATEGORY: _handle_subcategory,
    WizardStep.SKILL: _handle_skill,
    WizardStep.CONFIRM: _handle_confirm,
}


def transition(state: WizardState, event: WizardEvent, matrix: SkillsMatrix) -> WizardState:
    """
    Apply one event to the wizard.

    The input state is never modified. Events that do not apply to the
    current step leave the state unchanged. Missing navigation state is
    recovered by returning to the category list.

    Args:
        state: Current state
        event: The user's response to the current step
        matrix: The skills matrix

    Returns:
        The next state
    """
    new_state = state.copy()

    if new_state.finished:
        return new_state

    if isinstance(event, Cancel):
        new_state.pending_removal = None
        new_state.result = None
        new_state.step = WizardStep.CANCELLED
        return new_state

    if new_state.pending_removal is not None:
        if isinstance(event, ConfirmRemoval):
            _resolve_pending_removal(new_state, event.accepted)
        return new_state

    handler = _HANDLERS[new_state.step]
    try:
        handler(new_state, event, matrix)
    except WizardStateError as e:
        logger.debug("Recovering from wizard logic error: %s", e)
        new_state.current_top_category = None
        new_state.current_subcategory = None
        new_state.step = WizardStep.CATEGORY

    return new_state
