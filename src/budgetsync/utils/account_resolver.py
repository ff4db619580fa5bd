"""Utility for resolving account names to IDs."""

from budgetsync.domain.entities import AccountPayload, ChangeAction, EntityType
from budgetsync.domain.errors import NotFoundError


def resolve_account(store, ledger, account: str) -> str:
    """Resolve account name or ID to account ID.

    Accounts created offline and not yet synced are found through their
    pending create in the ledger.

    Args:
        store: Budget store with get_account/list_accounts
        ledger: Pending-change ledger
        account: Account ID or name (names match case-insensitively)

    Returns:
        Account ID

    Raises:
        NotFoundError: If account is not found
    """
    if store.get_account(account) is not None:
        return account

    pending_creates = {
        change.entity_id: change
        for change in ledger.snapshot()
        if change.entity_type == EntityType.ACCOUNT and change.action == ChangeAction.CREATE
    }
    if account in pending_creates:
        return account

    wanted = account.casefold()
    for acc in store.list_accounts():
        if acc.name.casefold() == wanted:
            pending = ledger.find(EntityType.ACCOUNT, acc.id)
            if pending is None or pending.action != ChangeAction.DELETE:
                return acc.id

    for entity_id, change in pending_creates.items():
        payload = change.payload
        if isinstance(payload, AccountPayload) and (payload.name or "").casefold() == wanted:
            return entity_id

    raise NotFoundError(f"Account '{account}' not found")
