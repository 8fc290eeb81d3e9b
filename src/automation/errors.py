"""Exception taxonomy for the automation engine.

Session-level errors are fatal to a run. Workflow-level errors carry the
outcome kind they map to and are journaled by the workflow. Locator and
oracle errors are non-fatal and handled by their callers.
"""

from src.automation.models import OutcomeKind


class AutomationError(Exception):
    """Base class for engine errors."""


class AuthenticationRequired(AutomationError):
    """No valid session is available; a fresh login is needed."""


class AuthenticationTimeout(AutomationError):
    """Login did not complete within the allowed time."""


class ElementNotFound(AutomationError):
    """A required element could not be located."""

    def __init__(self, intent: str, hints: list[str] | None = None):
        self.intent = intent
        self.hints = hints or []
        detail = f" (hints: {', '.join(self.hints)})" if self.hints else ""
        super().__init__(f"No element found for intent '{intent}'{detail}")


class OracleUnavailable(AutomationError):
    """The text-completion oracle could not produce an answer."""


class WorkflowFailure(AutomationError):
    """A job-level failure that ends one application attempt."""

    kind: OutcomeKind = OutcomeKind.FAILED_EXCEPTION

    def __init__(self, reason: str):
        self.reason = reason
        super().__init__(reason)


class FailedNoApplyControl(WorkflowFailure):
    kind = OutcomeKind.FAILED_NO_APPLY_CONTROL


class FailedTimeout(WorkflowFailure):
    kind = OutcomeKind.FAILED_TIMEOUT


class FailedSubmission(WorkflowFailure):
    kind = OutcomeKind.FAILED_SUBMISSION
