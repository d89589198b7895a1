"""Error taxonomy for the review workflow.

Every guard failure raised by the state machine, the field comment subsystem
or the service maps to exactly one of these classes. The API layer turns them
into 4xx responses carrying ``code`` and the message.
"""


class ReviewWorkflowError(Exception):
    """Base class for all review workflow guard failures."""

    code = "review_workflow_error"
    status_code = 400

    def __init__(self, message: str):
        super().__init__(message)
        self.message = message


class ValidationError(ReviewWorkflowError):
    """Missing or blank required input."""

    code = "validation_error"
    status_code = 400


class AuthorizationError(ReviewWorkflowError):
    """Caller is not the party required for the action."""

    code = "authorization_error"
    status_code = 403


class NotFoundError(ReviewWorkflowError):
    """Unknown review or comment id."""

    code = "not_found"
    status_code = 404


class ConflictError(ReviewWorkflowError):
    """A pending review already exists for the key."""

    code = "conflict"
    status_code = 409


class InvalidStateError(ReviewWorkflowError):
    """The review is not in a state that allows the action."""

    code = "invalid_state"
    status_code = 409


class BlockedError(ReviewWorkflowError):
    """Field comments block the transition."""

    code = "blocked"
    status_code = 409


class PublishBlockedError(ReviewWorkflowError):
    """Raised by the publish gate helper when publishing is not allowed."""

    code = "publish_blocked"
    status_code = 403

    def __init__(self, message: str, verdict):
        super().__init__(message)
        self.verdict = verdict


class DocumentStoreError(Exception):
    """The host document store could not be reached or answered with an error."""

    code = "document_store_unavailable"
    status_code = 502
