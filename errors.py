"""Error taxonomy for the storefront.

Services raise these; ``app.py`` turns them into the ``{success, error}``
envelope using ``status_code``.
"""


class StorefrontError(Exception):
    status_code = 500

    def __init__(self, message: str):
        super().__init__(message)
        self.message = message


class ValidationError(StorefrontError):
    """Missing or malformed input."""

    status_code = 400


class NotFoundError(StorefrontError):
    status_code = 404


class InvalidStateTransitionError(StorefrontError):
    """An illegal lifecycle move was attempted."""

    status_code = 409

    def __init__(self, entity: str, current: str, target: str):
        super().__init__(f"Cannot move {entity} from '{current}' to '{target}'")
        self.entity = entity
        self.current = current
        self.target = target


class ConflictError(StorefrontError):
    """Two terminal-state writes disagree. The first one stays."""

    status_code = 409

    def __init__(self, payment_id: str, stored: str, incoming: str):
        super().__init__(
            f"Payment {payment_id} is already '{stored}', refusing '{incoming}'"
        )
        self.payment_id = payment_id
        self.stored = stored
        self.incoming = incoming


class GatewayError(StorefrontError):
    """The payment gateway call failed or was rejected."""

    status_code = 502
