"""
Typed exceptions for the accounting and inventory ledger.

Every class carries a ``code`` attribute so API clients can branch on the
error kind without parsing messages. The HTTP mapping lives in ``main.py``.

    LedgerError
    |-- ValidationError          (also a ValueError)
    |   |-- InsufficientStockError
    |   `-- InvoiceCapacityError
    |-- NotFoundError
    |-- ConflictError
    `-- TransportError
"""

from decimal import Decimal


class LedgerError(Exception):
    """Base exception for all ledger errors."""

    code: str = "LEDGER_ERROR"

    def __init__(self, message: str):
        self.message = message
        super().__init__(message)


class ValidationError(LedgerError, ValueError):
    """Malformed or missing field, e.g. a zero or negative quantity."""

    code: str = "VALIDATION_ERROR"


class InsufficientStockError(ValidationError):
    """Requested consumption exceeds the item's physical stock."""

    code: str = "INSUFFICIENT_STOCK"

    def __init__(self, item_id: int, available: Decimal, requested: Decimal):
        self.item_id = item_id
        self.available = available
        self.requested = requested
        super().__init__(
            f"Insufficient stock for inventory item {item_id}: "
            f"available {available}, required {requested}"
        )


class InvoiceCapacityError(ValidationError):
    """Requested invoice quantity exceeds current_stock - invoiced_quantity."""

    code: str = "INVOICE_CAPACITY_EXCEEDED"

    def __init__(self, item_id: int, available: Decimal, requested: Decimal):
        self.item_id = item_id
        self.available = available
        self.requested = requested
        super().__init__(
            f"Cannot invoice {requested} of inventory item {item_id}: "
            f"only {available} available for invoice"
        )


class NotFoundError(LedgerError):
    """Referenced entity does not exist."""

    code: str = "NOT_FOUND"

    def __init__(self, entity: str, entity_id):
        self.entity = entity
        self.entity_id = entity_id
        super().__init__(f"{entity} not found: {entity_id}")


class ConflictError(LedgerError):
    """Operation clashes with existing data (duplicate number, row still referenced)."""

    code: str = "CONFLICT"


class TransportError(LedgerError):
    """The underlying store call failed."""

    code: str = "TRANSPORT_ERROR"
