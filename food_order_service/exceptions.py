from typing import List, Optional


class FoodOrderError(Exception):
    """Базовая ошибка сервиса.

    Бизнес-ошибки отдаются клиенту с описанием и не влияют на следующие запросы.
    """

    status_code = 500
    error = "server_error"

    def __init__(self, message: str):
        super().__init__(message)
        self.message = message


class NotFoundError(FoodOrderError):
    status_code = 404
    error = "not_found"


class ValidationError(FoodOrderError):
    status_code = 400
    error = "validation_error"

    def __init__(self, message: str, errors: Optional[List[str]] = None):
        super().__init__(message)
        self.errors = errors or []


class CrossRestaurantConflictError(FoodOrderError):
    status_code = 400
    error = "cross_restaurant_conflict"


class EmptyCartError(FoodOrderError):
    status_code = 400
    error = "empty_cart"


class ForbiddenError(FoodOrderError):
    status_code = 403
    error = "forbidden"


class InvalidTransitionError(FoodOrderError):
    status_code = 400
    error = "invalid_transition"


class InfrastructureError(FoodOrderError):
    """Временный сбой инфраструктуры, запрос можно повторить"""

    status_code = 500
    error = "server_error"


class ConcurrencyConflictError(InfrastructureError):
    pass


class CatalogUnavailableError(InfrastructureError):
    pass
