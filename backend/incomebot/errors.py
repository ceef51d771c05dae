"""Exception taxonomy for the reporting core."""


class IncomeBotError(Exception):
    """Base class for all reporting-core errors."""


class DataAccessError(IncomeBotError):
    """A collaborator read (managers, employees, income entries) failed."""


class NotFoundError(IncomeBotError):
    """Raised only where a caller explicitly requires the entity to exist."""


class DeliveryError(IncomeBotError):
    """Sending a rendered report to one recipient failed."""

    def __init__(self, address: str, message: str):
        super().__init__(f"delivery to {address} failed: {message}")
        self.address = address
