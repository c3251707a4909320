"""Exception hierarchy for the document repository and edit interface."""


class InkformError(Exception):
    """Base class for all domain errors raised by inkform."""


class DocumentNotFoundError(InkformError):
    """Raised when a document id is not present in the repository."""

    def __init__(self, document_id: str) -> None:
        super().__init__(f"Document not found: {document_id}")
        self.document_id = document_id


class RowNotFoundError(InkformError):
    """Raised when a single-row edit targets an index that does not exist."""

    def __init__(self, document_id: str, row_index: int) -> None:
        super().__init__(f"Row {row_index} not found in document {document_id}")
        self.document_id = document_id
        self.row_index = row_index


class InvalidEditError(InkformError):
    """Raised when an edit request cannot be applied, e.g. a bad pattern."""
