class StorefrontError(Exception):
    """Базовая ошибка витрины"""


class Unauthenticated(StorefrontError):
    """Мутирующая операция вызвана без текущего пользователя"""

    def __init__(self, operation: str = ""):
        self.operation = operation
        super().__init__(f"Authentication required for {operation}" if operation else "Authentication required")


class RemoteFailure(StorefrontError):
    """Хранилище отклонило запрос или недоступно"""

    def __init__(self, operation: str, owner=None, cause: Exception = None):
        self.operation = operation
        self.owner = owner
        self.cause = cause
        super().__init__(f"{operation} failed for owner {owner}: {cause}")


class NotFound(StorefrontError):
    """Запись не найдена"""

    def __init__(self, resource: str, key):
        self.resource = resource
        self.key = key
        super().__init__(f"{resource} {key} not found")


class CheckoutError(StorefrontError):
    """Заказ не может быть оформлен"""
