"""Typed errors raised by the disposal workflow. Messages are shown to the operator as-is."""


class DisposalError(Exception):
    status_code = 400

    def __init__(self, message: str):
        super().__init__(message)
        self.message = message


class ValidationError(DisposalError):
    """Malformed or out-of-range input (bid below minimum, missing rejection reason, ...)."""
    status_code = 400


class NotFoundError(DisposalError):
    status_code = 404


class InvalidStateError(DisposalError):
    """Operation not allowed in the entity's current lifecycle state."""
    status_code = 409


class InvalidTransitionError(InvalidStateError):
    def __init__(self, entity: str, current: str, action: str):
        super().__init__(f"Cannot {action} {entity} while it is {current}")
        self.current = current
        self.action = action


class ReserveNotMetError(DisposalError):
    status_code = 409

    def __init__(self, reserve_price: float, highest_bid: float):
        super().__init__(
            f"Reserve price not met. Reserve: {reserve_price:,.2f}, Highest Bid: {highest_bid:,.2f}"
        )
        self.reserve_price = reserve_price
        self.highest_bid = highest_bid


class DependencyError(DisposalError):
    """Persistence failure, or a follow-up step that failed after the primary step committed."""
    status_code = 503

    def __init__(self, message: str, completed_steps: tuple[str, ...] = ()):
        super().__init__(message)
        self.completed_steps = completed_steps
