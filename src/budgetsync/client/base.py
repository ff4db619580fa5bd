"""Abstract budget client interface.

The budget client owns the budget file, device knowledge and transport.
The core only hands it pending changes and reads snapshots from it.
"""

from abc import ABC, abstractmethod

from budgetsync.domain.entities import DeviceIdentity, PendingChange, Transaction


class BudgetClient(ABC):
    """Boundary to the budget store that persists synchronized changes."""

    @property
    @abstractmethod
    def can_write(self) -> bool:
        """Whether the loaded budget accepts pushes."""
        pass

    @abstractmethod
    async def push(self, changes: list[PendingChange]) -> None:
        """Persist the given changes as a remote diff.

        Raises on network, permission or storage failure; nothing may be
        assumed persisted in that case.
        """
        pass

    @abstractmethod
    def get_transaction_snapshot(self, account_id: str) -> list[Transaction]:
        """Return the account's transactions as currently stored."""
        pass

    @abstractmethod
    def get_device_identity(self) -> DeviceIdentity | None:
        """Return this device's identity, or None if not registered."""
        pass
