"""SelectionWizard - drives the wizard state machine with interactive prompts."""

import logging
from abc import ABC, abstractmethod
from typing import List, Optional, Sequence

from rich.console import Console
from rich.markup import escape
from rich.prompt import Confirm, Prompt

from ..matrix.models import SkillsMatrix
from .state import (
    Cancel,
    ConfirmRemoval,
    WizardEvent,
    WizardResult,
    WizardState,
    create_initial_state,
    transition,
)
from .views import Choice, build_view, event_for_choice, removal_message

logger = logging.getLogger(__name__)


class Prompter(ABC):
    """
    Asks the user one question at a time.

    Implementations raise KeyboardInterrupt (or EOFError) when the user
    aborts; the wizard turns that into a cancellation.
    """

    @abstractmethod
    def select(self, message: str, choices: List[Choice], default: Optional[str] = None) -> str:
        """Return the value of the chosen option."""

    @abstractmethod
    def confirm(self, message: str) -> bool:
        """Return the answer to a yes/no question."""

    def show(self, lines: List[str]) -> None:
        """Display informational lines before a question."""


class RichPrompter(Prompter):
    """Numbered-menu prompter rendered with rich."""

    def __init__(self, console: Optional[Console] = None, clear_screen: bool = True) -> None:
        self.console = console or Console()
        self.clear_screen = clear_screen

    def show(self, lines: List[str]) -> None:
        if self.clear_screen:
            self.console.clear()
        if lines:
            self.console.rule(style="dim")
            for line in lines:
                self.console.print(line)
            self.console.rule(style="dim")

    def select(self, message: str, choices: List[Choice], default: Optional[str] = None) -> str:
        self.console.print(f"\n[bold]{message}[/bold]")
        for index, choice in enumerate(choices, 1):
            line = f"  [cyan]{index:>2}[/cyan]. {choice.label}"
            if choice.hint:
                line += f"  [dim]{escape(choice.hint)}[/dim]"
            self.console.print(line)

        numbers = [str(i) for i in range(1, len(choices) + 1)]
        default_number = next(
            (str(i) for i, c in enumerate(choices, 1) if c.value == default), None
        )
        if default_number is None:
            answer = Prompt.ask(
                "Choose", choices=numbers, show_choices=False, console=self.console
            )
        else:
            answer = Prompt.ask(
                "Choose",
                choices=numbers,
                default=default_number,
                show_choices=False,
                console=self.console,
            )
        return choices[int(answer) - 1].value

    def confirm(self, message: str) -> bool:
        return Confirm.ask(escape(message), default=False, console=self.console)


class SelectionWizard:
    """
    Interactive skill selection session.

    Each iteration renders the current step, asks one question and feeds the
    answer to `transition`. The session ends when the user confirms a valid
    selection or aborts a prompt.

    Example:
        wizard = SelectionWizard(matrix)
        result = wizard.run()
        if result is None:
            print("Cancelled")
    """

    def __init__(
        self,
        matrix: SkillsMatrix,
        prompter: Optional[Prompter] = None,
        initial_skills: Optional[Sequence[str]] = None,
        has_local_skills: bool = False,
    ) -> None:
        """
        Initialize the wizard.

        Args:
            matrix: The skills matrix, read-only for the whole session
            prompter: Question asker; defaults to a RichPrompter
            initial_skills: Existing selection to edit
            has_local_skills: Start in expert mode
        """
        self.matrix = matrix
        self.prompter = prompter or RichPrompter()
        self.state: WizardState = create_initial_state(
            matrix, initial_skills=initial_skills, has_local_skills=has_local_skills
        )

    def run(self) -> Optional[WizardResult]:
        """
        Run the wizard until it completes or is cancelled.

        Returns:
            WizardResult on confirmation, None if the user cancelled
        """
        while not self.state.finished:
            event = self._next_event()
            logger.debug("Wizard %s <- %s", self.state.step.value, event)
            self.state = transition(self.state, event, self.matrix)

        return self.state.result

    def _next_event(self) -> WizardEvent:
        try:
            if self.state.pending_removal is not None:
                accepted = self.prompter.confirm(removal_message(self.state, self.matrix))
                return ConfirmRemoval(accepted)

            view = build_view(self.state, self.matrix)
            self.prompter.show(view.body)
            value = self.prompter.select(view.message, view.choices, view.default)
            return event_for_choice(value)
        except (KeyboardInterrupt, EOFError):
            return Cancel()


def run_wizard(
    matrix: SkillsMatrix,
    initial_skills: Optional[Sequence[str]] = None,
    has_local_skills: bool = False,
    prompter: Optional[Prompter] = None,
) -> Optional[WizardResult]:
    """Run a selection wizard session and return its result (None if cancelled)."""
    wizard = SelectionWizard(
        matrix,
        prompter=prompter,
        initial_skills=initial_skills,
        has_local_skills=has_local_skills,
    )
    return wizard.run()
