"""Exception hierarchy for sre-assist."""


class AssistError(Exception):
    """Base error; reported to the user without a traceback."""


class ConfigError(AssistError):
    """Invalid flags or LLM configuration."""


class CommandError(AssistError):
    """A cluster or OCM CLI invocation failed."""

    def __init__(self, message: str, output: str = "", returncode: int | None = None) -> None:
        super().__init__(message)
        self.output = output
        self.returncode = returncode


class CollectionError(AssistError):
    """Collection could not start or produce a usable bundle."""


class AnalysisError(AssistError):
    """The chat-completion endpoint could not produce an analysis."""
