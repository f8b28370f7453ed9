"""
Error taxonomy for trade-offer operations.

Every failure the offer service reports to its caller is one of four
synchronous errors. Each carries the HTTP status the web layer maps it to,
so the mapping lives next to the error instead of in every route.

Notification failures are NOT represented here: publishing and delivery
happen asynchronously and are only ever logged.
"""


class TradeError(Exception):
    """Base exception for all trade-offer errors."""

    code: str = "TRADE_ERROR"
    http_status: int = 500

    def __init__(self, message: str):
        super().__init__(message)
        self.message = message

    def to_response(self) -> dict:
        """Error body returned to HTTP clients."""
        return {"code": self.http_status, "error": self.code, "message": self.message}


class NotFoundError(TradeError):
    """A referenced item, user or offer does not exist."""
    code = "NOT_FOUND"
    http_status = 404


class ForbiddenError(TradeError):
    """The acting user lacks rights for the action."""
    code = "FORBIDDEN"
    http_status = 403


class InvalidStateError(TradeError):
    """The action is not valid for the offer's current status."""
    code = "INVALID_STATE"
    http_status = 400


class InvalidRequestError(TradeError):
    """Malformed or semantically invalid input, e.g. trading with yourself."""
    code = "INVALID_REQUEST"
    http_status = 400
