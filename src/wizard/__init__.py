"""Selection wizard - interactive, navigable skill selection."""

from .runner import Prompter, RichPrompter, SelectionWizard, run_wizard
from .state import (
    Back,
    Cancel,
    ConfirmRemoval,
    Continue,
    PendingRemoval,
    Select,
    ToggleExpertMode,
    WizardEvent,
    WizardResult,
    WizardState,
    WizardStep,
    create_initial_state,
    transition,
)
from .views import Choice, StepView, build_view, event_for_choice

__all__ = [
    "SelectionWizard",
    "run_wizard",
    "Prompter",
    "RichPrompter",
    "WizardStep",
    "WizardState",
    "WizardResult",
    "WizardEvent",
    "PendingRemoval",
    "Select",
    "Back",
    "Continue",
    "ToggleExpertMode",
    "ConfirmRemoval",
    "Cancel",
    "create_initial_state",
    "transition",
    "Choice",
    "StepView",
    "build_view",
    "event_for_choice",
]
