"""Thread-safe registry of evidence_file_id -> cancel event for in-flight transcription polls."""
import threading
import logging
from typing import Dict, Optional

logger = logging.getLogger(__name__)
_lock = threading.Lock()
_registry: Dict[str, threading.Event] = {}


def register(evidence_file_id: str) -> threading.Event:
    """Create the cancel event for a new poll, replacing any earlier poll's entry."""
    event = threading.Event()
    with _lock:
        _registry[evidence_file_id] = event
    logger.debug(f"Registered poll for evidence file {evidence_file_id}")
    return event


def unregister(evidence_file_id: str, event: Optional[threading.Event] = None) -> None:
    """Drop the entry. With event given, only if it is still the registered one."""
    with _lock:
        current = _registry.get(evidence_file_id)
        if current is None or (event is not None and current is not event):
            return
        del _registry[evidence_file_id]
    logger.debug(f"Unregistered poll for evidence file {evidence_file_id}")


def get_event(evidence_file_id: str) -> Optional[threading.Event]:
    with _lock:
        return _registry.get(evidence_file_id)


def cancel(evidence_file_id: str) -> bool:
    """Signal the poll for evidence_file_id to stop. Returns True if a poll was running."""
    with _lock:
        event = _registry.get(evidence_file_id)
    if event is None:
        return False
    event.set()
    return True


def clear() -> None:
    with _lock:
        _registry.clear()
