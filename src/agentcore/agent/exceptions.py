"""Custom exceptions for agent runs."""


class AgentError(Exception):
    """Base exception for agent execution errors."""

    pass


class ConcurrencyError(AgentError):
    """Exception raised when a run is requested while another one is active."""

    pass


class ModelInvocationError(AgentError):
    """Exception raised when the model invocation of an iteration fails."""

    def __init__(self, message: str, iteration: int | None = None):
        """Initialize with the failing iteration.

        Args:
            message: Description of the failure
            iteration: Iteration in which the invocation failed
        """
        super().__init__(message)
        self.iteration = iteration


class RunAbortedError(AgentError):
    """Exception raised inside the reasoning loop when a run is aborted."""

    pass
