"""
Error taxonomy for the booking ledger.

Every failure carries a stable ``kind`` that clients can switch on and the
HTTP status the routes answer with. A slot conflict is an expected outcome
(re-fetch availability and pick another slot), never a generic 500.
"""


class LedgerError(Exception):
    kind = "LedgerError"
    status_code = 500

    def __init__(self, message: str):
        super().__init__(message)
        self.message = message

    def to_dict(self) -> dict:
        return {"error": self.message, "kind": self.kind}


class InvalidInput(LedgerError):
    kind = "InvalidInput"
    status_code = 400


class NotFound(LedgerError):
    kind = "NotFound"
    status_code = 404


class ResourceNotAvailable(NotFound):
    """Artist missing, inactive, or not serving the requested salon."""
    kind = "ResourceNotAvailable"


class SlotAlreadyReserved(LedgerError):
    kind = "SlotAlreadyReserved"
    status_code = 409


class ServiceUnavailable(LedgerError):
    kind = "ServiceUnavailable"
    status_code = 503


class BookingFailed(LedgerError):
    kind = "BookingFailed"
    status_code = 500
