"""
Domain errors raised by the service layer.
Routes translate these into HTTP responses.
"""


class QuotationPortalError(Exception):
    """Base class for service-level failures."""


class ValidationFailed(QuotationPortalError):
    """A required group of fields is missing; the message names the group."""


class NotFound(QuotationPortalError):
    """The addressed document does not exist or is not visible."""


class PersistenceFailure(QuotationPortalError):
    """A database read or write failed."""


class NotificationFailed(QuotationPortalError):
    """An email could not be handed to the queue."""


class UpstreamFetchFailed(QuotationPortalError):
    """
    A forwarded request could not reach its target.

    Attributes:
        target_url: URL the request was forwarded to
        cause: Underlying transport exception
    """

    def __init__(self, target_url: str, cause: BaseException):
        super().__init__(f"Forwarding to {target_url} failed: {cause}")
        self.target_url = target_url
        self.cause = cause


class AccessDenied(QuotationPortalError):
    """The caller is signed in but may not act on the addressed document."""
