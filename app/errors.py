class SubscriptionError(Exception):
    """Base class for errors raised by the subscription core."""

    status_code = 500

    def __init__(self, detail: str):
        super().__init__(detail)
        self.detail = detail


class ValidationError(SubscriptionError):
    status_code = 422


class ConflictError(SubscriptionError):
    status_code = 409

    def __init__(self, service_name: str):
        super().__init__(
            f"Subscription for service {service_name} overlaps with existing subscription"
        )
        self.service_name = service_name


class NotFoundError(SubscriptionError):
    status_code = 404

    def __init__(self, detail: str = "Subscription not found"):
        super().__init__(detail)


class PersistenceError(SubscriptionError):
    """Record store failure. The caller only ever sees an opaque message."""

    status_code = 500
