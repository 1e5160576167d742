"""Persistent store for the shared state document and the event journal.

On-disk layout under the data directory:

    state.json        the StateDocument, rewritten wholesale on every save
    state.json.lock   filelock sidecar serializing read-modify-write cycles
    events.jsonl      append-only journal, one JSON object per line
    knowledge/        one ``<topic>.md`` file per knowledge topic

Components never cache state between calls; every operation reloads the
document so it observes the latest persisted version.
"""

from __future__ import annotations

import json
import os
import tempfile
from collections.abc import Iterator
from contextlib import contextmanager
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any

from filelock import FileLock, Timeout

from agentcoord.errors import StoreError
from agentcoord.logging import TRACE, VERBOSE, get_logger
from agentcoord.state.schema import Event, StateDocument
from agentcoord.utils import utcnow

log = get_logger("store")

STATE_FILENAME = "state.json"
EVENTS_FILENAME = "events.jsonl"
KNOWLEDGE_DIRNAME = "knowledge"


@dataclass
class Transaction:
    """One read-modify-write cycle.

    ``doc`` is the freshly loaded state. Events recorded with ``log`` are
    appended to the journal after the document is saved, still under the
    store lock.
    """

    doc: StateDocument
    events: list[Event] = field(default_factory=list)
    dirty: bool = False

    def touch(self) -> None:
        """Save on exit even if the serialized document is unchanged."""
        self.dirty = True

    def log(self, agent: str, action: str, **data: Any) -> Event:
        event = Event(agent=agent, action=action, data=data)
        self.events.append(event)
        return event


class Store:
    """File-backed store, constructed once per process for one data directory."""

    def __init__(self, data_dir: str | Path, lock_timeout: float = 10.0) -> None:
        """Initialize the store. Nothing touches the disk until first use.

        Args:
            data_dir: Directory holding the state document, journal and knowledge.
            lock_timeout: Seconds to wait for the store file lock.
        """
        self._data_dir = Path(data_dir).expanduser()
        self._state_path = self._data_dir / STATE_FILENAME
        self._events_path = self._data_dir / EVENTS_FILENAME
        self._knowledge_dir = self._data_dir / KNOWLEDGE_DIRNAME
        self._lock_path = self._state_path.with_name(STATE_FILENAME + ".lock")
        self._lock_timeout = lock_timeout
        self._lock = FileLock(self._lock_path, timeout=lock_timeout)

    @property
    def data_dir(self) -> Path:
        return self._data_dir

    @property
    def state_path(self) -> Path:
        return self._state_path

    @property
    def events_path(self) -> Path:
        return self._events_path

    @property
    def knowledge_dir(self) -> Path:
        self._ensure_layout()
        return self._knowledge_dir

    # =========================================================================
    # Locking
    # =========================================================================

    @contextmanager
    def locked(self) -> Iterator[None]:
        """Hold the store file lock. Re-entrant within a thread."""
        self._data_dir.mkdir(parents=True, exist_ok=True)
        try:
            with self._lock:
                yield
        except Timeout as e:
            raise StoreError(
                f"Timed out after {self._lock_timeout}s waiting for {self._lock_path}"
            ) from e

    @contextmanager
    def transaction(self) -> Iterator[Transaction]:
        """Load, let the caller mutate, then save and journal under one lock.

        The document is only saved when the caller changed it, recorded an
        event or called ``touch``, so denied or no-op operations leave
        ``version`` untouched. An exception raised inside the block discards
        the changes.
        """
        with self.locked():
            txn = Transaction(doc=self.load())
            before = txn.doc.to_dict()
            yield txn
            if txn.dirty or txn.events or txn.doc.to_dict() != before:
                self.save(txn.doc)
            for event in txn.events:
                self.append_event(event)

    # =========================================================================
    # State document
    # =========================================================================

    def _ensure_layout(self) -> None:
        """Create the data directory, empty state and empty journal if absent."""
        self._knowledge_dir.mkdir(parents=True, exist_ok=True)
        if not self._state_path.exists():
            with self.locked():
                if not self._state_path.exists():
                    log.info("Initializing state at %s", self._state_path)
                    self._write_state(StateDocument())
        if not self._events_path.exists():
            self._events_path.touch()

    def load(self) -> StateDocument:
        """Read the whole state document from disk."""
        self._ensure_layout()
        try:
            data = json.loads(self._state_path.read_text(encoding="utf-8"))
        except json.JSONDecodeError as e:
            raise StoreError(f"Corrupt state document {self._state_path}: {e}") from e
        if not isinstance(data, dict):
            raise StoreError(f"Corrupt state document {self._state_path}: not an object")
        return StateDocument.from_dict(data)

    def save(self, doc: StateDocument) -> None:
        """Stamp ``updated_at``, bump ``version`` by one and rewrite the document."""
        doc.updated_at = utcnow()
        doc.version += 1
        with self.locked():
            self._write_state(doc)
        log.log(VERBOSE, "Saved state version %d", doc.version)

    def _write_state(self, doc: StateDocument) -> None:
        # Temp file + rename so readers never see a half-written document
        self._data_dir.mkdir(parents=True, exist_ok=True)
        content = json.dumps(doc.to_dict(), indent=2) + "\n"
        fd, tmp_path = tempfile.mkstemp(
            dir=str(self._data_dir),
            prefix=f".{STATE_FILENAME}.",
            suffix=".tmp",
        )
        try:
            with os.fdopen(fd, "w", encoding="utf-8") as tmp:
                tmp.write(content)
                tmp.flush()
                os.fsync(tmp.fileno())
            os.replace(tmp_path, self._state_path)
        except BaseException:
            try:
                os.unlink(tmp_path)
            except OSError:
                pass
            raise

    # =========================================================================
    # Journal
    # =========================================================================

    def append_event(self, event: Event) -> Event:
        """Append one record to the journal."""
        line = json.dumps(event.to_dict(), default=str) + "\n"
        with self.locked():
            self._ensure_layout()
            with open(self._events_path, "a", encoding="utf-8") as f:
                f.write(line)
        log.log(TRACE, "Journaled %s by %s", event.action, event.agent)
        return event

    def read_events(self) -> list[Event]:
        """Parse the whole journal in append order."""
        self._ensure_layout()
        events: list[Event] = []
        with open(self._events_path, encoding="utf-8") as f:
            for lineno, line in enumerate(f, start=1):
                line = line.strip()
                if not line:
                    continue
                try:
                    events.append(Event.from_dict(json.loads(line)))
                except (json.JSONDecodeError, KeyError, ValueError) as e:
                    log.warning("Skipping unreadable journal line %d: %s", lineno, e)
        return events
