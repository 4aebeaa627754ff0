"""Step views - prompt messages, choices and summaries for each wizard step."""

from dataclasses import dataclass, field
from typing import Dict, List, Optional, Sequence

from rich.markup import escape

from ..matrix.models import ResolvedStack, SelectionValidation, SkillOption, SkillsMatrix
from ..matrix.resolver import (
    get_available_skills,
    get_subcategories,
    get_top_level_categories,
    is_category_all_disabled,
    short_reason,
    validate_selection,
)
from .state import (
    APPROACH_SCRATCH,
    APPROACH_STACK,
    CONFIRM_SELECTION,
    REVIEW_EDIT,
    Back,
    Continue,
    Select,
    ToggleExpertMode,
    WizardEvent,
    WizardState,
    WizardStep,
)

BACK_VALUE = "__back__"
CONTINUE_VALUE = "__continue__"
EXPERT_VALUE = "__expert__"


@dataclass
class Choice:
    """One selectable line in a prompt."""

    value: str
    label: str
    hint: Optional[str] = None


@dataclass
class StepView:
    """What to show for one step: optional body lines, a message and choices."""

    message: str
    choices: List[Choice]
    body: List[str] = field(default_factory=list)
    default: Optional[str] = None

    def values(self) -> List[str]:
        return [choice.value for choice in self.choices]


BACK_CHOICE = Choice(BACK_VALUE, "[dim]Back[/dim]")


def event_for_choice(value: str) -> WizardEvent:
    """Translate a chosen value into a wizard event."""
    if value == BACK_VALUE:
        return Back()
    if value == CONTINUE_VALUE:
        return Continue()
    if value == EXPERT_VALUE:
        return ToggleExpertMode()
    return Select(value)


# =============================================================================
# Selection summaries
# =============================================================================


def group_selection_by_category(
    selected_skills: Sequence[str], matrix: SkillsMatrix
) -> Dict[str, List[str]]:
    """
    Group selected skills by the name of their top-level category.

    Unknown ids are left out. Skills are shown by alias when they have one.
    """
    grouped: Dict[str, List[str]] = {}
    for skill_id in selected_skills:
        skill = matrix.skills.get(skill_id)
        if skill is None:
            continue

        category = matrix.categories.get(skill.category)
        top_id = category.parent if category is not None and category.parent else skill.category
        top = matrix.categories.get(top_id)
        category_name = top.name if top is not None else top_id

        grouped.setdefault(category_name, []).append(skill.alias or skill.name)
    return grouped


def selection_header(selected_skills: Sequence[str], matrix: SkillsMatrix) -> List[str]:
    """Header lines listing the current selection, empty when nothing is selected."""
    grouped = group_selection_by_category(selected_skills, matrix)
    if not grouped:
        return []

    lines = ["[bold]Selected:[/bold]"]
    for category_name, names in grouped.items():
        lines.append(f"  [cyan]{escape(category_name)}[/cyan]: {escape(', '.join(names))}")
    return lines


def validation_lines(validation: SelectionValidation) -> List[str]:
    """Error and warning lines for a validation result."""
    lines: List[str] = []
    if validation.errors:
        lines.append("")
        lines.append("[bold red]Errors:[/bold red]")
        for error in validation.errors:
            lines.append(f"  [red]x[/red] {escape(error.message)}")
    if validation.warnings:
        lines.append("")
        lines.append("[bold yellow]Warnings:[/bold yellow]")
        for warning in validation.warnings:
            lines.append(f"  [yellow]![/yellow] {escape(warning.message)}")
    return lines


# =============================================================================
# Option formatting
# =============================================================================


def format_skill_option(option: SkillOption) -> Choice:
    """Label a skill according to its display state."""
    name = escape(option.name)

    if option.selected:
        label = f"[green]✓ {name}[/green]"
    elif option.disabled:
        reason = short_reason(option.disabled_reason).lower()
        label = f"[dim]{name} (disabled, {escape(reason)})[/dim]"
    elif option.discouraged:
        label = f"{name} (not recommended)"
    elif option.recommended:
        label = f"{name} [green](recommended)[/green]"
    else:
        label = name

    return Choice(option.id, label, option.description or None)


def format_stack_option(stack: ResolvedStack) -> Choice:
    return Choice(stack.id, escape(stack.name), stack.description or None)


# =============================================================================
# Step views
# =============================================================================


def _approach_view(state: WizardState, matrix: SkillsMatrix) -> StepView:
    expert = "on" if state.expert_mode else "off"
    return StepView(
        message="How would you like to set up your stack?",
        choices=[
            Choice(
                APPROACH_STACK,
                "Use a pre-built stack",
                "recommended - quickly get started with a curated selection",
            ),
            Choice(APPROACH_SCRATCH, "Start from scratch", "choose each skill yourself"),
            Choice(
                EXPERT_VALUE,
                f"[dim]Expert mode: {expert}[/dim]",
                "skip conflict and requirement checks",
            ),
        ],
    )


def _stack_view(state: WizardState, matrix: SkillsMatrix) -> StepView:
    return StepView(
        message="Select a stack:",
        choices=[BACK_CHOICE] + [format_stack_option(s) for s in matrix.suggested_stacks],
        body=selection_header(state.selected_skills, matrix),
        default=state.selected_stack.id if state.selected_stack else None,
    )


def _stack_review_view(state: WizardState, matrix: SkillsMatrix) -> StepView:
    stack = state.selected_stack
    body: List[str] = []
    if stack is not None:
        body.append(f"[bold]{escape(stack.name)}[/bold]")
        if stack.philosophy:
            body.append(f"[dim]{escape(stack.philosophy)}[/dim]")
        body.append("")
    body.extend(selection_header(state.selected_skills, matrix))

    return StepView(
        message="Use this stack?",
        choices=[
            BACK_CHOICE,
            Choice(REVIEW_EDIT, "Customize skills", "add or remove skills by category"),
            Choice(CONFIRM_SELECTION, "[green]Confirm and continue[/green]"),
        ],
        body=body,
        default=CONFIRM_SELECTION,
    )


def _category_view(state: WizardState, matrix: SkillsMatrix) -> StepView:
    top_categories = get_top_level_categories(matrix)
    remaining = [c for c in top_categories if c not in state.visited_categories]

    choices = [BACK_CHOICE]
    for category_id in top_categories:
        choices.append(Choice(category_id, escape(matrix.categories[category_id].name)))
    if state.selected_skills:
        choices.append(Choice(CONTINUE_VALUE, "[green]Continue[/green]"))

    return StepView(
        message=f"Select a category to configure ({len(remaining)} remaining):",
        choices=choices,
        body=selection_header(state.selected_skills, matrix),
        default=state.last_selected_category,
    )


def _subcategory_view(state: WizardState, matrix: SkillsMatrix) -> StepView:
    top_id = state.current_top_category
    top = matrix.categories.get(top_id) if top_id else None
    if top is None:
        return StepView(message="Select a subcategory:", choices=[BACK_CHOICE])

    options = state.resolve_options
    choices = [BACK_CHOICE]
    for sub_id in get_subcategories(top.id, matrix):
        sub = matrix.categories[sub_id]
        name = escape(sub.name)
        selected = [
            s
            for s in get_available_skills(sub_id, state.selected_skills, matrix, options)
            if s.selected
        ]
        all_disabled = is_category_all_disabled(sub_id, state.selected_skills, matrix, options)

        if selected:
            label = f"{name} [green]({escape(selected[0].name)} selected)[/green]"
        elif all_disabled.disabled:
            reason = short_reason(all_disabled.reason).lower()
            label = f"[dim]{name} (disabled, {escape(reason)})[/dim]"
        elif sub.required:
            label = f"{name} [yellow](required)[/yellow]"
        else:
            label = name
        choices.append(Choice(sub_id, label))

    return StepView(
        message=f"{escape(top.name)} - Select a subcategory:",
        choices=choices,
        body=selection_header(state.selected_skills, matrix),
        default=state.last_selected_subcategory,
    )


def _skill_view(state: WizardState, matrix: SkillsMatrix) -> StepView:
    sub_id = state.current_subcategory
    sub = matrix.categories.get(sub_id) if sub_id else None
    if sub is None:
        return StepView(message="Select a skill:", choices=[BACK_CHOICE])

    skills = get_available_skills(sub.id, state.selected_skills, matrix, state.resolve_options)
    return StepView(
        message=f"{escape(sub.name)}:",
        choices=[BACK_CHOICE] + [format_skill_option(option) for option in skills],
        body=selection_header(state.selected_skills, matrix),
        default=state.last_selected_skill,
    )


def _confirm_view(state: WizardState, matrix: SkillsMatrix) -> StepView:
    body = ["[bold]Selected Skills:[/bold]"]
    if not state.selected_skills:
        body.append("[dim]  No skills selected[/dim]")
    for skill_id in state.selected_skills:
        skill = matrix.skills.get(skill_id)
        if skill is None:
            continue
        category = matrix.categories.get(skill.category)
        category_name = category.name if category is not None else skill.category
        body.append(
            f"  [green]+[/green] {escape(skill.name)} [dim]({escape(category_name)})[/dim]"
        )

    validation = validate_selection(state.selected_skills, matrix)
    body.extend(validation_lines(validation))

    choices = [BACK_CHOICE]
    if validation.valid:
        choices.append(Choice(CONFIRM_SELECTION, "[green]Confirm and continue[/green]"))
        message = "Confirm your selection?"
    else:
        message = "Selection has errors. What would you like to do?"

    return StepView(
        message=message,
        choices=choices,
        body=body,
        default=CONFIRM_SELECTION if validation.valid else BACK_VALUE,
    )


_VIEWS = {
    WizardStep.APPROACH: _approach_view,
    WizardStep.STACK: _stack_view,
    WizardStep.STACK_REVIEW: _stack_review_view,
    WizardStep.CATEGORY: _category_view,
    WizardStep.SUBCATEGORY: _subcategory_view,
    WizardStep.SKILL: _skill_view,
    WizardStep.CONFIRM: _confirm_view,
}


def build_view(state: WizardState, matrix: SkillsMatrix) -> StepView:
    """
    Build the view for the state's current step.

    Raises:
        ValueError: If the wizard has already finished
    """
    view = _VIEWS.get(state.step)
    if view is None:
        raise ValueError(f"No view for finished step '{state.step.value}'")
    return view(state, matrix)


def removal_message(state: WizardState, matrix: SkillsMatrix) -> str:
    """Confirmation question naming the skills a pending removal also drops."""
    pending = state.pending_removal
    if pending is None:
        return ""
    names = ", ".join(matrix.skill_name(d) for d in pending.dependents)
    return (
        f"Removing {matrix.skill_name(pending.skill_id)} will also remove: {names}. Continue?"
    )
