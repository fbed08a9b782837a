from fastapi import HTTPException, status

class StorefrontError(HTTPException):
    """Base for errors reported to API callers with a category and retry hint."""
    category = "error"
    retriable = False

    def __init__(self, status_code: int, detail: str):
        super().__init__(status_code=status_code, detail=detail)

    def to_payload(self) -> dict:
        return {
            "success": False,
            "error": self.detail,
            "category": self.category,
            "retriable": self.retriable,
        }

class ValidationError(StorefrontError):
    category = "validation"

    def __init__(self, detail: str):
        super().__init__(
            status_code=status.HTTP_422_UNPROCESSABLE_ENTITY,
            detail=detail
        )

class ResourceNotFoundError(StorefrontError):
    category = "not_found"

    def __init__(self, resource: str, resource_id: int):
        super().__init__(
            status_code=status.HTTP_404_NOT_FOUND,
            detail=f"{resource} with id {resource_id} not found"
        )

class InsufficientStockError(StorefrontError):
    """A conditional decrement found less stock than requested. Retrying the same cart fails the same way."""
    category = "insufficient_stock"

    def __init__(self, product_id: int, product_name: str, requested: int):
        self.product_id = product_id
        self.requested = requested
        super().__init__(
            status_code=status.HTTP_409_CONFLICT,
            detail=(
                f"Insufficient stock for {product_name} (requested {requested}). "
                "Reduce the quantity or remove the item."
            )
        )

class StorageError(StorefrontError):
    """The storage engine failed mid-operation. Safe to resubmit."""
    category = "storage"
    retriable = True

    def __init__(self, detail: str = "Storage unavailable, please retry"):
        super().__init__(
            status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
            detail=detail
        )
