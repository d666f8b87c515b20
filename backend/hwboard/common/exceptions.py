"""Domain exceptions raised by the homework board core."""


class HwboardError(Exception):
    """Base class for all hwboard errors."""


class UnknownOperationError(HwboardError, KeyError):
    """An operation type that is not registered was requested.

    This is a programming/configuration defect, never a runtime condition
    to retry.
    """

    def __init__(self, operation_type: str):
        super().__init__(operation_type)
        self.operation_type = operation_type

    def __str__(self) -> str:
        return f"Unknown operation type: {self.operation_type!r}"


class EntityNotFoundError(HwboardError, LookupError):
    """A referenced row does not exist in the store."""

    def __init__(self, entity: str, entity_id: str):
        super().__init__(f"{entity} not found: {entity_id}")
        self.entity = entity
        self.entity_id = entity_id


class InvalidScheduleError(HwboardError, ValueError):
    """An assignment's deadline lies before its creation instant."""
