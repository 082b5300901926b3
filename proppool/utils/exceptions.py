"""
Error taxonomy for pool, prop and pick operations.

Every error carries a stable ``code`` so callers can map it to a message or
status without matching on class names.
"""


class PropPoolError(Exception):
    """Base error for service-layer operations."""

    code = "PROP_POOL_ERROR"

    def __init__(self, message=None, **details):
        super().__init__(message or self.__class__.__doc__)
        self.message = message or self.__class__.__doc__
        self.details = details

    def __str__(self):
        return f"{self.code}: {self.message}"

    def to_dict(self):
        return {"code": self.code, "message": self.message}


# Not found


class NotFound(PropPoolError):
    """Requested record does not exist."""

    code = "NOT_FOUND"


class PoolNotFound(NotFound):
    """Pool not found."""

    code = "POOL_NOT_FOUND"


class PropNotFound(NotFound):
    """Prop not found."""

    code = "PROP_NOT_FOUND"


class PlayerNotFound(NotFound):
    """Player not found."""

    code = "PLAYER_NOT_FOUND"


# Invalid input


class InvalidInput(PropPoolError):
    """Input failed validation."""

    code = "VALIDATION_ERROR"


class InvalidOption(InvalidInput):
    """Option index out of range."""

    code = "INVALID_OPTION"


class DuplicatePlayerName(InvalidInput):
    """A player with that name already exists in this pool."""

    code = "NAME_TAKEN"


# Invalid state transitions


class InvalidStateTransition(PropPoolError):
    """Operation not allowed in the current state."""

    code = "INVALID_STATE"


class PoolNotLocked(InvalidStateTransition):
    """Pool must be locked first."""

    code = "POOL_NOT_LOCKED"


class PoolLocked(InvalidStateTransition):
    """Pool is already locked or completed."""

    code = "POOL_LOCKED"


class AlreadyVoided(InvalidStateTransition):
    """Prop is already voided."""

    code = "ALREADY_VOIDED"


class PropVoided(InvalidStateTransition):
    """Prop has been voided and no longer accepts picks."""

    code = "PROP_VOIDED"


class PicksClosed(InvalidStateTransition):
    """Pool is not accepting picks."""

    code = "PICKS_CLOSED"


class UnresolvedProps(InvalidStateTransition):
    """Every active prop must be resolved before completing the pool."""

    code = "UNRESOLVED_PROPS"


class InvalidTransition(InvalidStateTransition):
    """Pool status cannot move to the requested status."""

    code = "INVALID_TRANSITION"


# Store failures


class TransactionFailure(PropPoolError):
    """The database transaction was aborted and rolled back."""

    code = "TRANSACTION_FAILED"
