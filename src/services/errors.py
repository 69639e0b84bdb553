# errors raised by the service layer


class ServiceError(Exception):
    """Base class of every error a service raises on purpose."""


class InvalidInput(ServiceError, ValueError):
    """Input rejected before any read or write happened."""


class InvalidOrderInput(InvalidInput):
    pass


class InvalidProductInput(InvalidInput):
    pass


class InvalidCSV(InvalidInput):
    pass


class UserNotExist(ServiceError):
    def __init__(self, message: str = "user does not exist"):
        super().__init__(message)


class ProductNotExist(ServiceError):
    def __init__(self, message: str = "product does not exist"):
        super().__init__(message)


class UserNotFound(ServiceError):
    def __init__(self, message: str = "user is not found"):
        super().__init__(message)


class ProductNotFound(ServiceError):
    def __init__(self, message: str = "product is not found"):
        super().__init__(message)


class UserInUse(ServiceError):
    def __init__(self, message: str = "user is referenced by products or orders"):
        super().__init__(message)


class ProductInUse(ServiceError):
    def __init__(self, message: str = "product is referenced by order items"):
        super().__init__(message)


class EmailExisted(ServiceError):
    def __init__(self, message: str = "email existed"):
        super().__init__(message)


class EmailNotExist(ServiceError):
    def __init__(self, message: str = "email does not exist"):
        super().__init__(message)


class PasswordIncorrect(ServiceError):
    def __init__(self, message: str = "password is incorrect"):
        super().__init__(message)


class PersistenceError(ServiceError):
    """A write failed inside a transaction; the underlying error is __cause__."""
