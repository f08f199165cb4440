"""Error taxonomy shared by services and routers."""
from typing import Optional


class JournalError(Exception):
    """Base class for every error the service raises on purpose."""


class ValidationFailed(JournalError, ValueError):
    """Input rejected before any write happened."""


class WithdrawalRejected(ValidationFailed):
    def __init__(self, message: str, max_withdrawal: Optional[float] = None):
        super().__init__(message)
        self.max_withdrawal = max_withdrawal


class NotFound(JournalError, LookupError):
    def __init__(self, entity: str, entity_id):
        super().__init__(f"{entity} {entity_id} not found")
        self.entity = entity
        self.entity_id = entity_id


class StorageError(JournalError):
    """A read or write against the database failed; the transaction was rolled back."""


class MentorUnavailable(JournalError):
    """No LLM provider produced an answer. The user's message is kept."""


class MentorBusy(JournalError):
    """Another mentor request for the same user is still running."""
