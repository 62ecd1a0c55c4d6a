"""Immutability enforcement for financial records using SQLAlchemy events."""

import logging
from datetime import UTC, datetime

from sqlalchemy import event, inspect

from staymarket.core.exceptions import ValidationError

logger = logging.getLogger(__name__)

_registered = False


class ImmutabilityViolationError(ValidationError):
    """Raised when attempting to modify immutable financial records."""

    def __init__(self, model_name: str, operation: str, record_id: str):
        self.model_name = model_name
        self.operation = operation
        self.record_id = record_id
        super().__init__(
            f"Immutability violation: Cannot {operation} {model_name} record {record_id}. "
            "Financial records are immutable after creation."
        )


def _log_immutability_violation(model_name: str, operation: str, record_id: str) -> None:
    """Log immutability violation for audit purposes."""
    logger.error(
        f"IMMUTABILITY_VIOLATION: Attempted to {operation} {model_name} "
        f"record_id={record_id} at {datetime.now(UTC).isoformat()}"
    )


def _previous_value(target, attr: str):
    history = inspect(target).attrs[attr].history
    if history.deleted:
        return history.deleted[0]
    if history.unchanged:
        return history.unchanged[0]
    return None


def changed_frozen_fields(target) -> list[str]:
    """Frozen monetary columns modified on an already-confirmed booking."""
    from staymarket.models.booking import FROZEN_MONETARY_FIELDS

    if _previous_value(target, "payment_status") != "confirmed":
        return []
    state = inspect(target)
    return [name for name in FROZEN_MONETARY_FIELDS if state.attrs[name].history.has_changes()]


def _forbid(model_name: str, operation: str):
    def listener(mapper, connection, target):
        _log_immutability_violation(model_name, operation, str(target.id))
        raise ImmutabilityViolationError(model_name, operation, str(target.id))

    return listener


def register_immutability_enforcement():
    """Register SQLAlchemy event listeners for immutability enforcement.

    Safe to call more than once; listeners are attached a single time.
    """
    global _registered
    if _registered:
        return

    from staymarket.models.booking import Booking, CancellationRecord
    from staymarket.models.wallet import WalletTransaction

    # ============ Booking: monetary fields frozen after confirmation ============

    @event.listens_for(Booking, "before_update")
    def prevent_confirmed_booking_repricing(mapper, connection, target):
        """Prevent changes to the price or commission of a confirmed booking."""
        changed = changed_frozen_fields(target)
        if changed:
            _log_immutability_violation("Booking", f"UPDATE {','.join(changed)} of", str(target.id))
            raise ImmutabilityViolationError("Booking", "UPDATE", str(target.id))

    @event.listens_for(Booking, "before_delete")
    def prevent_confirmed_booking_delete(mapper, connection, target):
        """Prevent deletion of a confirmed booking."""
        if _previous_value(target, "payment_status") == "confirmed":
            _log_immutability_violation("Booking", "DELETE", str(target.id))
            raise ImmutabilityViolationError("Booking", "DELETE", str(target.id))

    # ============ WalletTransaction: Append-Only ============

    event.listen(WalletTransaction, "before_update", _forbid("WalletTransaction", "UPDATE"))
    event.listen(WalletTransaction, "before_delete", _forbid("WalletTransaction", "DELETE"))

    # ============ CancellationRecord: Append-Only ============

    event.listen(CancellationRecord, "before_update", _forbid("CancellationRecord", "UPDATE"))
    event.listen(CancellationRecord, "before_delete", _forbid("CancellationRecord", "DELETE"))

    _registered = True
    logger.info("Immutability enforcement registered for financial records")
