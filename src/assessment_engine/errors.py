"""Exceptions raised by the assessment engine.

Graph-interpretation problems (malformed JSON, dangling ids) are never
raised; they degrade inside the evaluator and resolver.  Only the boundary
and misuse conditions below surface as exceptions.
"""


class AssessmentUnavailableError(ValueError):
    """The assessment cannot be run: not found, unpublished, or has no questions."""


class ServiceError(Exception):
    """A data-service call failed (network error or non-success response).

    Surfaced to the user as a retryable message; the flow phase does not
    advance.
    """

    def __init__(self, message: str, status_code: int | None = None) -> None:
        super().__init__(message)
        self.status_code = status_code


class FlowBusyError(RuntimeError):
    """A submission is already in flight for this run."""
