from __future__ import annotations


class MissingContextError(ValueError):
    """Raised when a roadmap request lacks one of its three context records."""

    def __init__(self, missing):
        self.missing = list(missing)
        super().__init__("Missing required context data: " + ", ".join(self.missing))
