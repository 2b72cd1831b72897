"""
Domain errors.
"""


class RecordNotFoundError(LookupError):
    """Raised when a client, project or field record does not exist."""

    def __init__(self, kind: str, record_id: str):
        super().__init__(f"{kind} '{record_id}' not found")
        self.kind = kind
        self.record_id = record_id
