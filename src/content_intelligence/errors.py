class EngineNotInitializedError(RuntimeError):
    """Raised when a query reaches an engine whose index has never been built."""


class DocumentNotFoundError(KeyError):
    """Raised when a document id is not part of the published corpus."""

    def __init__(self, document_id: str):
        super().__init__(document_id)
        self.document_id = document_id

    def __str__(self) -> str:
        return f"Document not found: {self.document_id}"
