"""Custom exceptions for matrix loading and wizard navigation."""

from typing import List, Optional

from pydantic import ValidationError


class MatrixError(Exception):
    """Base exception for skills matrix errors."""

    pass


class MatrixLoadError(MatrixError):
    """
    Raised when a matrix configuration cannot be loaded or validated.

    Wraps pydantic validation failures so callers only need to handle a
    single exception type.
    """

    def __init__(
        self,
        message: str,
        source: Optional[str] = None,
        validation_error: Optional[ValidationError] = None,
    ):
        """
        Initialize MatrixLoadError.

        Args:
            message: Summary of what went wrong
            source: File path or description of the input being loaded
            validation_error: The underlying pydantic ValidationError, if any
        """
        self.source = source
        self.validation_error = validation_error

        full_message = message
        if source:
            full_message += f"\n  Source: {source}"

        if validation_error is not None:
            full_message += "\n\nValidation errors:\n"
            for error in validation_error.errors():
                field = " -> ".join(str(loc) for loc in error["loc"])
                full_message += f"  - {field}: {error['msg']}\n"

        super().__init__(full_message)


class MissingFieldsError(MatrixLoadError):
    """Raised when required sections or fields are absent from a configuration."""

    def __init__(self, where: str, missing: List[str], source: Optional[str] = None):
        self.where = where
        self.missing = missing
        super().__init__(
            f"{where} is missing required fields: {', '.join(missing)}", source=source
        )


class WizardStateError(MatrixError):
    """
    Raised when a wizard step is entered without its prerequisite state.

    Never escapes the wizard: the transition function catches it and falls
    back to the category list.
    """

    def __init__(self, step: str, missing: str):
        self.step = step
        self.missing = missing
        super().__init__(f"Step '{step}' requires '{missing}' to be set")
