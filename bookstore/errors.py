"""Domain exceptions for checkout and rentals.

Services raise these; ``bookstore.main`` turns them into JSON responses
using ``status_code`` and ``payload``.
"""
from typing import Any, Dict, Optional


class BookstoreError(Exception):
    status_code = 400

    def __init__(self, message: str, **payload: Any):
        super().__init__(message)
        self.message = message
        self.payload: Dict[str, Any] = payload


class EmptyCartError(BookstoreError):
    status_code = 400

    def __init__(self, message: str = "Cart is empty", **payload: Any):
        super().__init__(message, **payload)


class InvalidCouponError(BookstoreError):
    status_code = 400


class NotFoundError(BookstoreError):
    status_code = 404


class InvalidStatusTransitionError(BookstoreError):
    status_code = 409


class UnpaidRentalError(BookstoreError):
    status_code = 402

    def __init__(self, message: str = "Rental purchase not found or not paid", **payload: Any):
        super().__init__(message, **payload)


class DuplicateActiveRentalError(BookstoreError):
    """Raised with the id of the license that is already active."""

    status_code = 409

    def __init__(self, license_id: Optional[int], message: str = "You already have an active rental for this book"):
        super().__init__(message, license_id=license_id)
        self.license_id = license_id


class RentalAlreadyIssuedError(BookstoreError):
    status_code = 409


class NoDigitalVersionError(BookstoreError):
    status_code = 422

    def __init__(self, message: str = "Digital version not available", **payload: Any):
        super().__init__(message, **payload)


class InsufficientInventoryError(BookstoreError):
    status_code = 409


class InvalidLicenseTokenError(BookstoreError):
    status_code = 403

    def __init__(self, message: str = "Invalid security token", **payload: Any):
        super().__init__(message, **payload)


class LicenseInactiveError(BookstoreError):
    status_code = 410


class LicenseExpiredError(BookstoreError):
    status_code = 410

    def __init__(self, message: str = "Rental has expired", **payload: Any):
        super().__init__(message, **payload)


class AccessLimitReachedError(BookstoreError):
    status_code = 403


class OrderCreationError(BookstoreError):
    status_code = 500

    def __init__(self, message: str = "Failed to create order", **payload: Any):
        super().__init__(message, **payload)
