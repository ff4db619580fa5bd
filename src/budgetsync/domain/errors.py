"""Shared domain error messages and error types."""


class DomainError(ValueError):
    """Base class for domain-level errors.

    Subclasses provide semantic categories while preserving ValueError
    compatibility for existing error handling.
    """


class ValidationError(DomainError):
    """Invalid input or failed validation in domain logic.

    Carries every reason that failed so callers can show them all at once.
    """

    def __init__(self, message: str, reasons: list[str] | None = None):
        super().__init__(message)
        self.reasons = list(reasons) if reasons else [message]


class NotFoundError(DomainError):
    """Requested domain entity does not exist."""


class EditModeRequired(DomainError):
    """Mutation attempted while the budget is read-only."""


class BalanceMismatch(DomainError):
    """Reconciliation finish attempted while the account is not balanced."""


class SyncFailure(DomainError):
    """Push to the budget client was rejected or failed."""


def edit_mode_required(action: str) -> str:
    """Return message for an edit attempted in read-only mode."""
    return f"Edit mode must be enabled to {action}"


def transaction_not_found(transaction_id: str) -> str:
    """Return message for missing transaction."""
    return f"Transaction {transaction_id} not found"


def not_selectable(transaction_id: str) -> str:
    """Return message for a transaction that cannot be reconciled."""
    return f"Transaction {transaction_id} is not an uncleared transaction of this account"


def balance_mismatch(difference) -> str:
    """Return message when a reconciliation cannot finish."""
    return f"Account is not balanced: difference is {difference:,.2f}"


def wrong_step(operation: str, step) -> str:
    """Return message for a session operation invoked at the wrong step."""
    return f"Cannot {operation} while reconciliation is at step '{step.name.lower()}'"


def pending_delete(entity: str) -> str:
    """Return message for an edit to an entity awaiting deletion."""
    return f"{entity} has a pending delete; withdraw the delete first"
