"""
Logging context management for the token indexer.

Provides context variables for batch and slot tracking in logs.
"""

import logging
import uuid
from contextlib import contextmanager
from contextvars import ContextVar
from typing import Generator, Optional

batch_id_var: ContextVar[Optional[str]] = ContextVar("batch_id", default=None)
slot_var: ContextVar[Optional[int]] = ContextVar("slot", default=None)


def get_batch_id() -> Optional[str]:
    """Get the current batch ID from context."""
    return batch_id_var.get()


def get_slot() -> Optional[int]:
    """Get the slot currently being processed, if any."""
    return slot_var.get()


def generate_batch_id() -> str:
    """Generate a new batch ID (8 hex characters)."""
    return uuid.uuid4().hex[:8]


@contextmanager
def log_context(
    batch_id: Optional[str] = None,
    slot: Optional[int] = None,
    auto_batch_id: bool = False,
) -> Generator[dict[str, Optional[object]], None, None]:
    """Context manager for setting log context.

    Values are restored when the context exits, including on error.

    Args:
        batch_id: Batch ID to set. Generated when None and auto_batch_id is True.
        slot: Slot of the account update being processed.
        auto_batch_id: If True, auto-generate batch_id if not provided.

    Yields:
        Dictionary with the active context values.

    Example:
        with log_context(auto_batch_id=True) as ctx:
            info(f"Flushing batch {ctx['batch_id']}")
    """
    old_batch_id = batch_id_var.get()
    old_slot = slot_var.get()

    new_batch_id = batch_id
    if new_batch_id is None and auto_batch_id:
        new_batch_id = generate_batch_id()

    if new_batch_id is not None:
        batch_id_var.set(new_batch_id)
    if slot is not None:
        slot_var.set(slot)

    try:
        yield {"batch_id": batch_id_var.get(), "slot": slot_var.get()}
    finally:
        batch_id_var.set(old_batch_id)
        slot_var.set(old_slot)


class ContextFilter(logging.Filter):
    """Adds batch_id and slot attributes to every log record."""

    def filter(self, record: logging.LogRecord) -> bool:
        record.batch_id = batch_id_var.get()
        record.slot = slot_var.get()
        return True
