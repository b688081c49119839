# orderbook/domain/errors.py


class OrderBookError(Exception):
    """Base class for every error the order book reports to its callers."""

    kind = "error"


class ValidationError(OrderBookError):
    kind = "validation"


class DuplicateShadeError(ValidationError):
    def __init__(self, name: str):
        super().__init__(f"Shade '{name}' already exists")
        self.name = name


class NotFoundError(OrderBookError):
    kind = "not_found"


class PersistenceError(OrderBookError):
    kind = "persistence"


class ConflictError(OrderBookError):
    kind = "conflict"
