"""Pending-change ledger.

Records offline edits as a deduplicated log: at most one entry exists per
(entity type, entity id). A new change for an entity that already has an
entry is merged into it:

    existing  incoming  result
    create    update    create, incoming payload laid over existing
    create    delete    entry removed (entity never left the device),
                        or delete if the create is being pushed
    create    create    create, payload replaced
    update    update    update, payload replaced
    update    delete    delete
    update    create    update, payload replaced
    delete    any       unchanged until the delete is withdrawn

Merged entries keep their id and get a new revision, which lets the sync
dispatcher drop exactly the entries it pushed (see acknowledge()). While a
push is in flight the ledger knows which creates may already exist
remotely (see begin_flush()).
"""

import logging
import time
import uuid
from dataclasses import replace
from typing import Any, Callable, Iterable, Optional

from budgetsync.domain.entities import (
    PAYLOAD_TYPES,
    ChangeAction,
    EntityType,
    NewChange,
    PendingChange,
    merge_payload,
)
from budgetsync.domain.errors import ValidationError
from budgetsync.domain.events import EventEmitter

log = logging.getLogger(__name__)


def _coerce_enum(enum_type, value, label: str):
    if isinstance(value, enum_type):
        return value
    try:
        return enum_type(value)
    except ValueError:
        allowed = ", ".join(member.value for member in enum_type)
        raise ValidationError(f"Unknown {label} '{value}' (expected one of: {allowed})")


class PendingChangeLedger:
    """Ordered, deduplicated log of edits awaiting synchronization."""

    def __init__(self, changes: Iterable[PendingChange] = ()):
        """Initialize the ledger.

        Args:
            changes: Previously persisted entries to start from
        """
        self._entries: dict[tuple[EntityType, str], PendingChange] = {}
        self._events = EventEmitter()
        self._in_flight: dict[str, PendingChange] = {}
        for change in changes:
            self._entries[change.key] = change

    # Observables

    @property
    def count(self) -> int:
        return len(self._entries)

    @property
    def is_dirty(self) -> bool:
        return bool(self._entries)

    def __len__(self) -> int:
        return self.count

    def subscribe(self, listener: Callable[[list[PendingChange]], None]) -> Callable[[], None]:
        """Call ``listener`` with the new snapshot after every mutation."""
        return self._events.subscribe(listener)

    def snapshot(self) -> list[PendingChange]:
        """Return the current entries, oldest first."""
        return list(self._entries.values())

    def find(self, entity_type: EntityType, entity_id: str) -> Optional[PendingChange]:
        """Return the entry for an entity, or None."""
        return self._entries.get((EntityType(entity_type), entity_id))

    def get(self, change_id: str) -> Optional[PendingChange]:
        """Return the entry with the given change id, or None."""
        for change in self._entries.values():
            if change.id == change_id:
                return change
        return None

    # Mutations

    def record(self, change: NewChange) -> str:
        """Insert or merge a change.

        Args:
            change: The edit to record

        Returns:
            Id of the ledger entry holding the change. When the change
            cancels out a pending create, the removed entry's id is
            returned.

        Raises:
            ValidationError: If the change is malformed
        """
        change = self._validate(change)
        key = (change.entity_type, change.entity_id)
        existing = self._entries.get(key)

        if existing is None:
            entry = PendingChange(
                id=uuid.uuid4().hex,
                entity_type=change.entity_type,
                action=change.action,
                entity_id=change.entity_id,
                entity_name=change.entity_name,
                payload=change.payload,
                recorded_at=time.monotonic(),
            )
            self._entries[key] = entry
            log.debug("Recorded %s %s %s", entry.action.value, entry.entity_type.value, entry.entity_id)
            self._notify()
            return entry.id

        if existing.action == ChangeAction.DELETE:
            log.info(
                "Ignoring %s of %s %s: a delete is pending",
                change.action.value,
                change.entity_type.value,
                change.entity_id,
            )
            return existing.id

        if (
            existing.action == ChangeAction.CREATE
            and change.action == ChangeAction.DELETE
            and not self._create_in_flight(existing)
        ):
            # Never synced, so nothing to delete remotely
            del self._entries[key]
            log.debug("Create and delete of %s %s cancelled out", change.entity_type.value, change.entity_id)
            self._notify()
            return existing.id

        if change.action == ChangeAction.DELETE:
            action = ChangeAction.DELETE
            payload = None
        elif existing.action == ChangeAction.CREATE and change.action == ChangeAction.UPDATE:
            action = ChangeAction.CREATE
            payload = merge_payload(existing.payload, change.payload)
        else:
            action = existing.action
            payload = change.payload

        merged = replace(
            existing,
            action=action,
            payload=payload,
            entity_name=change.entity_name or existing.entity_name,
            recorded_at=time.monotonic(),
            revision=existing.revision + 1,
        )
        self._entries[key] = merged
        log.debug(
            "Merged %s into %s for %s %s (revision %d)",
            change.action.value,
            action.value,
            change.entity_type.value,
            change.entity_id,
            merged.revision,
        )
        self._notify()
        return merged.id

    def record_many(self, changes: Iterable[NewChange]) -> list[str]:
        """Record several changes, validating all of them first."""
        validated = [self._validate(change) for change in changes]
        return [self.record(change) for change in validated]

    def discard(self, change_id: str) -> None:
        """Remove a single entry. Unknown ids are ignored."""
        for key, change in self._entries.items():
            if change.id == change_id:
                del self._entries[key]
                log.debug("Discarded change %s", change_id)
                self._notify()
                return

    def withdraw_delete(self, entity_type: EntityType, entity_id: str) -> bool:
        """Withdraw a pending delete so the entity can be edited again.

        Returns:
            True if a pending delete was removed
        """
        key = (EntityType(entity_type), entity_id)
        existing = self._entries.get(key)
        if existing is None or existing.action != ChangeAction.DELETE:
            return False
        del self._entries[key]
        log.debug("Withdrew delete of %s %s", key[0].value, entity_id)
        self._notify()
        return True

    def clear(self) -> None:
        """Remove every entry."""
        if not self._entries:
            return
        self._entries.clear()
        log.debug("Cleared ledger")
        self._notify()

    def begin_flush(self, pushed: Iterable[PendingChange]) -> None:
        """Mark entries as being pushed.

        Until acknowledge() or abort_flush() is called, a delete recorded
        over one of these creates stays pending as a delete instead of
        cancelling the create out.
        """
        self._in_flight = {change.id: change for change in pushed}

    def acknowledge(self, pushed: Iterable[PendingChange]) -> int:
        """Remove entries that were pushed and not modified since.

        Entries merged after the push snapshot was taken have a higher
        revision and are kept. A kept entry that is still a create becomes
        an update, since the pushed create now exists in the budget.

        Returns:
            Number of entries removed
        """
        pushed_by_id = {change.id: change for change in pushed}
        self._in_flight = {}
        removed = 0
        changed = False
        for key, change in list(self._entries.items()):
            sent = pushed_by_id.get(change.id)
            if sent is None:
                continue
            if sent.revision == change.revision:
                del self._entries[key]
                removed += 1
                changed = True
            elif sent.action == ChangeAction.CREATE and change.action == ChangeAction.CREATE:
                self._entries[key] = replace(change, action=ChangeAction.UPDATE)
                log.debug("Pushed create of %s %s kept as update", key[0].value, key[1])
                changed = True
        if changed:
            self._notify()
        return removed

    def abort_flush(self, pushed: Iterable[PendingChange]) -> int:
        """Forget a push that failed.

        A delete recorded over a create of the failed push cancels out after
        all, since the create never reached the budget.

        Returns:
            Number of entries removed
        """
        pushed_by_id = {change.id: change for change in pushed}
        self._in_flight = {}
        cancelled = [
            key
            for key, change in self._entries.items()
            if change.action == ChangeAction.DELETE
            and change.id in pushed_by_id
            and pushed_by_id[change.id].action == ChangeAction.CREATE
        ]
        for key in cancelled:
            del self._entries[key]
            log.debug("Create and delete of %s %s cancelled out after failed push", key[0].value, key[1])
        if cancelled:
            self._notify()
        return len(cancelled)

    def is_pending_delete(self, entity_type: EntityType, entity_id: str) -> bool:
        """Whether further edits to the entity are ignored until the delete is withdrawn."""
        existing = self.find(entity_type, entity_id)
        return existing is not None and existing.action == ChangeAction.DELETE

    def overlay_pending(self, change: NewChange) -> NewChange:
        """Lay a partial update over the pending update of the same entity.

        Two updates merge by replacing the payload, so producers of partial
        updates pass their change through here to keep earlier fields.
        """
        if change.action != ChangeAction.UPDATE or not change.entity_id:
            return change
        pending = self.find(change.entity_type, change.entity_id)
        if pending is None or pending.action != ChangeAction.UPDATE:
            return change
        return replace(change, payload=merge_payload(pending.payload, change.payload))

    # Persistence helpers

    def to_records(self) -> list[dict[str, Any]]:
        """Serialize entries to JSON-safe dicts."""
        return [change.to_record() for change in self._entries.values()]

    @classmethod
    def from_records(cls, records: Iterable[dict[str, Any]]) -> "PendingChangeLedger":
        """Rebuild a ledger from to_records() output."""
        return cls(PendingChange.from_record(record) for record in records)

    # Internals

    def _validate(self, change: NewChange) -> NewChange:
        entity_type = _coerce_enum(EntityType, change.entity_type, "entity type")
        action = _coerce_enum(ChangeAction, change.action, "action")

        entity_id = change.entity_id
        if not entity_id:
            if action != ChangeAction.CREATE:
                raise ValidationError(f"An entity id is required to {action.value} a {entity_type.value}")
            entity_id = str(uuid.uuid4())

        payload = change.payload
        expected = PAYLOAD_TYPES[entity_type]
        if payload is not None and not isinstance(payload, expected):
            raise ValidationError(
                f"Payload for {entity_type.value} must be {expected.__name__}, "
                f"got {type(payload).__name__}"
            )
        if payload is None and action != ChangeAction.DELETE:
            payload = expected()

        return NewChange(
            entity_type=entity_type,
            action=action,
            entity_id=str(entity_id),
            entity_name=change.entity_name or "",
            payload=payload,
        )

    def _create_in_flight(self, entry: PendingChange) -> bool:
        sent = self._in_flight.get(entry.id)
        return sent is not None and sent.action == ChangeAction.CREATE

    def _notify(self) -> None:
        self._events.emit(self.snapshot())
