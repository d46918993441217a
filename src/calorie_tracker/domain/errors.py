"""User-facing validation errors."""


class ValidationError(Exception):
    """Raised when an explicit save or create is blocked by invalid input."""

    def __init__(self, messages: list[str]) -> None:
        super().__init__("; ".join(messages))
        self.messages = list(messages)


class MacroSplitError(ValidationError):
    """Macro percentages do not add up to 100."""


class CustomFoodError(ValidationError):
    """A custom food is missing required fields or has invalid values."""


class ExerciseDurationError(ValidationError):
    """Exercise duration is outside the accepted range."""


class MealValidationError(ValidationError):
    """A saved meal is missing its name or items."""


class ProfileUnavailableError(Exception):
    """The stored profile could not be read, so it cannot be changed."""

    def __init__(self, uid: str) -> None:
        super().__init__(f"Profile for {uid} is temporarily unavailable")
        self.uid = uid
