"""
Custom exception classes and error handlers
Provides consistent error responses across the application
"""

from fastapi import FastAPI, HTTPException, Request, status
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from starlette.exceptions import HTTPException as StarletteHTTPException
from typing import Any, Dict, Optional

class StorefrontException(HTTPException):
    """Base exception class for the storefront application"""

    def __init__(
        self,
        status_code: int,
        detail: str,
        error_code: Optional[str] = None,
        headers: Optional[Dict[str, Any]] = None,
    ):
        super().__init__(status_code=status_code, detail=detail, headers=headers)
        self.error_code = error_code

class BadRequestException(StorefrontException):
    """400 Bad Request"""

    def __init__(self, detail: str, error_code: str = "BAD_REQUEST"):
        super().__init__(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail=detail,
            error_code=error_code
        )

class UnauthorizedException(StorefrontException):
    """401 Unauthorized"""

    def __init__(self, detail: str = "Unauthorized", error_code: str = "UNAUTHORIZED"):
        super().__init__(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail=detail,
            error_code=error_code,
            headers={"WWW-Authenticate": "Bearer"}
        )

class ForbiddenException(StorefrontException):
    """403 Forbidden"""

    def __init__(self, detail: str = "Forbidden", error_code: str = "FORBIDDEN"):
        super().__init__(
            status_code=status.HTTP_403_FORBIDDEN,
            detail=detail,
            error_code=error_code
        )

class NotFoundException(StorefrontException):
    """404 Not Found"""

    def __init__(self, detail: str = "Not found", error_code: str = "NOT_FOUND"):
        super().__init__(
            status_code=status.HTTP_404_NOT_FOUND,
            detail=detail,
            error_code=error_code
        )

class ConflictException(StorefrontException):
    """409 Conflict"""

    def __init__(self, detail: str, error_code: str = "CONFLICT"):
        super().__init__(
            status_code=status.HTTP_409_CONFLICT,
            detail=detail,
            error_code=error_code
        )

class ValidationException(StorefrontException):
    """400 for input that passed the schema but not the business rules"""

    def __init__(self, detail: str, error_code: str = "VALIDATION_ERROR"):
        super().__init__(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail=detail,
            error_code=error_code
        )

class InternalServerException(StorefrontException):
    """500 Internal Server Error"""

    def __init__(
        self,
        detail: str = "Internal server error",
        error_code: str = "INTERNAL_ERROR"
    ):
        super().__init__(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail=detail,
            error_code=error_code
        )

class ServiceUnavailableException(StorefrontException):
    """503 Service Unavailable"""

    def __init__(
        self,
        detail: str = "Service temporarily unavailable",
        error_code: str = "SERVICE_UNAVAILABLE"
    ):
        super().__init__(
            status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
            detail=detail,
            error_code=error_code
        )

# Business logic exceptions
class EmptyCartException(BadRequestException):
    """Checkout attempted without cart items"""

    def __init__(self, detail: str = "Your cart is empty. Please add items before checking out."):
        super().__init__(detail=detail, error_code="EMPTY_CART")

class CartItemNotFoundException(NotFoundException):
    """Update targeted a variant that is not in the cart"""

    def __init__(self, detail: str = "Item not found in cart"):
        super().__init__(detail=detail, error_code="CART_ITEM_NOT_FOUND")

class InsufficientStockException(BadRequestException):
    """Variant stock insufficient"""

    def __init__(self, product_name: str, variant_name: str, available: int):
        self.available = available
        super().__init__(
            detail=f"Only {available} units of {product_name} - {variant_name} available",
            error_code="INSUFFICIENT_STOCK"
        )

class ItemUnavailableException(BadRequestException):
    """Cart line whose variant or product was withdrawn from sale"""

    def __init__(self, product_name: str, variant_name: str):
        super().__init__(
            detail=f"{product_name} - {variant_name} is no longer available",
            error_code="ITEM_UNAVAILABLE"
        )

class InvalidDiscountException(BadRequestException):
    """Discount code unknown, inactive or exhausted"""

    def __init__(self, detail: str = "Invalid discount code"):
        super().__init__(detail=detail, error_code="INVALID_DISCOUNT")

class InsufficientPointsException(BadRequestException):
    """User tried to redeem more loyalty points than they hold"""

    def __init__(self, available: int):
        self.available = available
        super().__init__(
            detail=f"You only have {available} loyalty points available",
            error_code="INSUFFICIENT_POINTS"
        )

class InvalidStatusTransitionException(BadRequestException):
    """Order status change not allowed by the state machine"""

    def __init__(self, detail: str):
        super().__init__(detail=detail, error_code="INVALID_STATUS_TRANSITION")

class DuplicateResourceException(ConflictException):
    """Resource already exists"""

    def __init__(self, resource: str, field: str, value: str):
        super().__init__(
            detail=f"{resource} with {field} '{value}' already exists",
            error_code="DUPLICATE_RESOURCE"
        )

class OrderNotCancellableException(BadRequestException):
    """Order cannot be cancelled"""

    def __init__(self, detail: str = "Order cannot be cancelled as it has already been processed"):
        super().__init__(
            detail=detail,
            error_code="ORDER_NOT_CANCELLABLE"
        )

def error_payload(request: Request, code: Optional[str], message: Any) -> Dict[str, Any]:
    """Uniform error body"""
    return {
        "error": {
            "code": code,
            "message": message,
            "request_id": getattr(request.state, "request_id", None)
        }
    }

async def storefront_exception_handler(request: Request, exc: StorefrontException) -> JSONResponse:
    return JSONResponse(
        status_code=exc.status_code,
        content=error_payload(request, exc.error_code, exc.detail),
        headers=exc.headers
    )

async def http_exception_handler(request: Request, exc: StarletteHTTPException) -> JSONResponse:
    return JSONResponse(
        status_code=exc.status_code,
        content=error_payload(request, "HTTP_ERROR", exc.detail),
        headers=getattr(exc, "headers", None)
    )

async def validation_exception_handler(request: Request, exc: RequestValidationError) -> JSONResponse:
    errors = exc.errors()
    first = errors[0] if errors else {}
    field = ".".join(str(part) for part in first.get("loc", ()) if part != "body")
    message = first.get("msg", "Invalid request")
    if field:
        message = f"{field}: {message}"
    return JSONResponse(
        status_code=status.HTTP_400_BAD_REQUEST,
        content=error_payload(request, "VALIDATION_ERROR", message)
    )

def register_exception_handlers(app: FastAPI) -> None:
    """Map typed errors to the uniform JSON error envelope"""
    app.add_exception_handler(StorefrontException, storefront_exception_handler)
    app.add_exception_handler(StarletteHTTPException, http_exception_handler)
    app.add_exception_handler(RequestValidationError, validation_exception_handler)
