
class PostingError(Exception):
    """Base class for every error the transaction engine reports.

    `kind` is the stable machine-checkable name sent to API clients,
    `status_code` the HTTP status the API layer answers with.
    """
    kind = "error"
    status_code = 500

    def __init__(self, detail=""):
        self.detail = detail
        super().__init__(detail)


class ValidationError(PostingError):
    """Raised when required fields are missing or malformed."""
    kind = "validation_error"
    status_code = 400


class NotFoundError(PostingError):
    """Raised when a referenced transaction, item or party does not exist
    within the caller's company."""
    kind = "not_found"
    status_code = 404


class ConflictError(PostingError):
    """Raised on a natural-key collision (item/party name, transaction
    number) or when an estimate has already been converted."""
    kind = "conflict"
    status_code = 409


class StoreError(PostingError):
    """Raised when the database fails and the unit of work was rolled back."""
    kind = "store_error"
    status_code = 500
