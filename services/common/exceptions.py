"""
Exceptions raised by the reminder engine
"""


class LedgerUnavailableError(Exception):
    """The document store backing the entity store or the sent-alert ledger failed"""

    def __init__(self, key: str, cause: Exception = None):
        self.key = key
        self.cause = cause
        message = f"Document store unavailable for key '{key}'"
        if cause is not None:
            message = f"{message}: {cause}"
        super().__init__(message)


class DeliveryError(Exception):
    """The delivery collaborator could not hand an alert off"""
    pass
