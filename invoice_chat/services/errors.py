"""
Exception taxonomy for the invoice chat pipeline.

Every failure the client can observe maps to one of these types. The API
layer collapses all of them except AuthenticationError into the same
generic 500 response, so the distinction only matters for logging.
"""


class InvoiceProcessingError(Exception):
    """Base exception for invoice pipeline failures."""


class AuthenticationError(InvoiceProcessingError):
    """Raised when the request carries no valid session."""


class AttachmentFetchError(InvoiceProcessingError):
    """Raised when the uploaded attachment cannot be downloaded."""


class ExtractionError(InvoiceProcessingError):
    """Raised when the document parser cannot read the attachment."""


class ResponseParseError(InvoiceProcessingError):
    """Base exception for validator replies that are not in the expected shape."""


class NoJsonFoundError(ResponseParseError):
    """Raised when the validator reply contains no brace-delimited object."""


class MalformedJsonError(ResponseParseError):
    """Raised when the extracted object is not valid JSON or fails schema validation."""


class DuplicateInvoiceError(InvoiceProcessingError):
    """Raised by storage when the (vendor, number, amount) triple already exists."""

    def __init__(self, existing: dict | None = None):
        self.existing = existing
        super().__init__("Invoice with the same vendor, number and amount already exists")
