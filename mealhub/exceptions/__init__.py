"""Custom exceptions for the MealHub application."""


class MealHubError(Exception):
    """Base exception for all application errors."""
    def __init__(self, message="An internal error occurred", status_code=500, payload=None):
        super().__init__(message)
        self.message = message
        self.status_code = status_code
        self.payload = payload

    def to_dict(self):
        rv = dict(self.payload or ())
        rv['error'] = self.message
        return rv


class ValidationError(MealHubError):
    """Missing or malformed input."""
    def __init__(self, message, payload=None):
        super().__init__(message, 400, payload)


class EmptyOrderError(ValidationError):
    """Raised when checkout resolves no items."""
    def __init__(self, message="No items to order"):
        super().__init__(message)


class NotFoundError(MealHubError):
    """Exception raised when a resource is not found."""
    def __init__(self, message="Resource not found", payload=None):
        super().__init__(message, 404, payload)


class ConflictError(MealHubError):
    """Request conflicts with the current state of the store."""
    def __init__(self, message, status_code=409, payload=None):
        super().__init__(message, status_code, payload)


class InsufficientStockError(ConflictError):
    """Raised when an operation fails due to lack of stock."""
    def __init__(self, item_name, required, available):
        message = f"Insufficient stock for {item_name}: requested {required}, available {available}"
        super().__init__(message, status_code=400, payload={'item': item_name})
        self.item_name = item_name
        self.required = required
        self.available = available


class MixedSupplierError(ConflictError):
    """Raised when order lines belong to more than one supplier."""
    def __init__(self, message="Cart has items from another supplier"):
        super().__init__(message, status_code=400)


class StorageError(MealHubError):
    """Transaction or driver failure; the transaction has been rolled back."""
    def __init__(self, message="Storage error, please retry", payload=None):
        super().__init__(message, 500, payload)


class ExternalServiceError(MealHubError):
    """A payment provider or supplier endpoint could not be reached."""
    def __init__(self, message="External service unavailable", payload=None):
        super().__init__(message, 502, payload)
