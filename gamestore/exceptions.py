class PaymentWorkflowError(Exception):
    """Base class for failures of the order payment workflow."""


class NotFound(PaymentWorkflowError):
    pass


class OrderNotFound(NotFound):
    def __init__(self, message: str = "Order not found"):
        super().__init__(message)


class SessionNotFound(NotFound):
    def __init__(self, message: str = "Payment session not found"):
        super().__init__(message)


class UnauthenticatedCustomer(PaymentWorkflowError):
    def __init__(self, message: str = "User not authenticated"):
        super().__init__(message)


class ProviderError(PaymentWorkflowError):
    """The payment provider call failed or answered with a non-2xx status."""


class PersistenceError(PaymentWorkflowError):
    """A database write failed."""


class InvalidRequest(PaymentWorkflowError):
    pass


class ConfigurationError(PaymentWorkflowError):
    pass
