# mobileshop/domain/errors.py
"""
Storefront error taxonomy.

StorefrontError (base)
├── AuthRequired         no signed-in user for an operation that needs one
├── NotFound             referenced product / cart line / order is absent
├── ValidationError      request rejected before anything was written
│   └── StockLimitExceeded
├── CheckoutInProgress   another checkout for the same user holds the lock
├── PersistenceError     a gateway call failed
└── CheckoutFailed       a checkout step failed after the order was created

Services raise these; routers turn them into short user-facing messages.
"""


class StorefrontError(Exception):
    """Base for every error the storefront raises on purpose."""

    def __init__(self, message: str, details: dict | None = None):
        super().__init__(message)
        self.message = message
        self.details = details or {}

    def __str__(self) -> str:
        return self.message

    def __repr__(self) -> str:
        if self.details:
            details_str = ", ".join(f"{k}={v}" for k, v in self.details.items())
            return f"{self.__class__.__name__}('{self.message}', {details_str})"
        return f"{self.__class__.__name__}('{self.message}')"


class AuthRequired(StorefrontError):
    def __init__(self, message: str = "Sign in required"):
        super().__init__(message)


class NotFound(StorefrontError):
    def __init__(self, entity: str, entity_id):
        super().__init__(f"{entity} not found", {"entity": entity, "id": entity_id})


class ValidationError(StorefrontError):
    pass


class StockLimitExceeded(ValidationError):
    def __init__(self, product_id: str, requested: int, available: int):
        super().__init__(
            "Not enough stock",
            {"product_id": product_id, "requested": requested, "available": available},
        )


class CheckoutInProgress(StorefrontError):
    def __init__(self, user_id: str):
        super().__init__("Checkout already in progress", {"user_id": user_id})


class PersistenceError(StorefrontError):
    pass


class CheckoutFailed(StorefrontError):
    """
    Raised when a checkout step fails after the order row was written.

    details carry order_id, failed_step ("order_lines" or "cart_clear")
    and rolled_back: whether the partial order was undone.
    """

    def __init__(self, order_id: str, failed_step: str, rolled_back: bool):
        super().__init__(
            "Checkout failed",
            {"order_id": order_id, "failed_step": failed_step, "rolled_back": rolled_back},
        )

    @property
    def rolled_back(self) -> bool:
        return self.details["rolled_back"]
