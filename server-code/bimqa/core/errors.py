from __future__ import annotations


class BimQAError(Exception):
    pass


class MissingInputError(BimQAError):
    """Request lacks the model id or the question."""

    def __init__(self, field: str):
        super().__init__(f"Missing {field}")
        self.field = field


class PlanContractError(BimQAError):
    """A task was requested without the field it needs (e.g. distinct without targetParam)."""


class ReasoningError(BimQAError):
    """The reasoning service failed or returned something unusable."""
