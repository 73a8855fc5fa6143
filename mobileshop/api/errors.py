# mobileshop/api/errors.py
from fastapi import HTTPException

from mobileshop.domain.errors import (
    AuthRequired,
    CheckoutFailed,
    CheckoutInProgress,
    NotFound,
    PersistenceError,
    StockLimitExceeded,
    StorefrontError,
    ValidationError,
)

# most specific first
_STATUS_CODES = (
    (AuthRequired, 401),
    (NotFound, 404),
    (StockLimitExceeded, 409),
    (CheckoutInProgress, 409),
    (ValidationError, 400),
    (CheckoutFailed, 502),
    (PersistenceError, 502),
)


def to_http(exc: StorefrontError, failure_message: str) -> HTTPException:
    """
    Backend failures become the generic failure_message of the operation
    ("Failed to add to cart"); rejections keep their own short message.
    """
    status_code = next((code for cls, code in _STATUS_CODES if isinstance(exc, cls)), 500)
    if isinstance(exc, (PersistenceError, CheckoutFailed)) or status_code == 500:
        return HTTPException(status_code=status_code, detail=failure_message)
    return HTTPException(status_code=status_code, detail=str(exc))
