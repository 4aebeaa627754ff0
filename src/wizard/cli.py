"""Command-line entry point: run the selection wizard or validate a selection."""

import argparse
import logging
import sys
from difflib import get_close_matches
from pathlib import Path
from typing import List, Optional

from rich.console import Console
from rich.logging import RichHandler
from rich.markup import escape

from ..matrix.loader import MatrixLoader
from ..matrix.models import SkillsMatrix
from ..matrix.resolver import resolve_alias, validate_selection
from .runner import RichPrompter, run_wizard
from .views import validation_lines


def _build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="skill-matrix",
        description="Assemble and validate skill selections against a skills matrix",
    )
    parser.add_argument(
        "-v", "--verbose", action="store_true", help="Enable debug logging"
    )
    subparsers = parser.add_subparsers(dest="command", required=True)

    wizard = subparsers.add_parser("wizard", help="Interactively select skills")
    wizard.add_argument("matrix", help="Path to the skills matrix YAML file")
    wizard.add_argument("--skills", help="YAML list of skill records", default=None)
    wizard.add_argument(
        "--local-skills", help="YAML list of project-local skills", default=None
    )
    wizard.add_argument(
        "--initial",
        nargs="*",
        default=None,
        help="Skill ids or aliases to start from (edit an existing selection)",
    )
    wizard.add_argument("-o", "--output", help="Write the result JSON here", default=None)

    validate = subparsers.add_parser("validate", help="Validate a selection")
    validate.add_argument("matrix", help="Path to the skills matrix YAML file")
    validate.add_argument("skill_ids", nargs="*", metavar="SKILL", help="Skill ids or aliases")
    validate.add_argument("--skills", help="YAML list of skill records", default=None)

    return parser


def _load(args: argparse.Namespace) -> SkillsMatrix:
    loader = MatrixLoader()
    return loader.load_matrix(
        args.matrix,
        skills_path=args.skills,
        local_skills_path=getattr(args, "local_skills", None),
    )


def _run_wizard(args: argparse.Namespace, console: Console) -> int:
    matrix = _load(args)
    has_local = any(skill.local for skill in matrix.skills.values())

    result = run_wizard(
        matrix,
        initial_skills=args.initial,
        has_local_skills=has_local,
        prompter=RichPrompter(console=console),
    )

    if result is None:
        console.print("[yellow]Selection cancelled[/yellow]")
        return 1

    payload = result.model_dump_json(indent=2)
    if args.output:
        Path(args.output).write_text(payload, encoding="utf-8")
        console.print(f"Result saved to: {args.output}")
    else:
        console.print_json(payload)
    return 0


def _run_validate(args: argparse.Namespace, console: Console) -> int:
    matrix = _load(args)

    known = list(matrix.aliases) + list(matrix.skills)
    selected = []
    for reference in args.skill_ids:
        if resolve_alias(reference, matrix) in matrix.skills:
            selected.append(reference)
            continue
        message = f"[yellow]Unknown skill '{escape(reference)}' (ignored)[/yellow]"
        suggestions = get_close_matches(reference, known, n=3, cutoff=0.6)
        if suggestions:
            message += f" Did you mean: {escape(', '.join(suggestions))}?"
        console.print(message)

    validation = validate_selection(selected, matrix)

    for line in validation_lines(validation):
        console.print(line)

    if validation.valid:
        console.print("[green]Selection is valid[/green]")
    console.print(
        f"\nValidation Summary: {len(validation.errors)} error(s), "
        f"{len(validation.warnings)} warning(s)"
    )
    return 0 if validation.valid else 1


def main(argv: Optional[List[str]] = None) -> None:
    """CLI entry point."""
    parser = _build_parser()
    args = parser.parse_args(argv)

    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.WARNING,
        format="%(name)s: %(message)s",
        handlers=[
            RichHandler(console=Console(stderr=True), show_time=False, show_path=False)
        ],
    )

    console = Console()
    try:
        if args.command == "wizard":
            code = _run_wizard(args, console)
        else:
            code = _run_validate(args, console)
    except Exception as e:
        print(f"Error: {e}", file=sys.stderr)
        sys.exit(1)

    sys.exit(code)


if __name__ == "__main__":
    main()
