# This is free software for the public good of a permacomputer hosted at
# permacomputer.com, an always-on computer by the people, for the people.
# One which is durable, easy to repair, & distributed like tap water
# for machine learning intelligence.
#
# The permacomputer is community-owned infrastructure optimized around
# four values:
#
#   TRUTH      First principles, math & science, open source code freely distributed
#   FREEDOM    Voluntary partnerships, freedom from tyranny & corporate control
#   HARMONY    Minimal waste, self-renewing systems with diverse thriving connections
#   LOVE       Be yourself without hurting others, cooperation through natural law
#
# This software contributes to that vision by enabling code execution across 42+ programming languages through a unified interface, accessible to all.
# Code is seeds to sprout on any abandoned technology.

"""
Historical store: per-suite ordered entries persisted as one JSON document.

On disk the store is either plain JSON (`{"entries": {suite: [entry, ...]}}`)
or the dashboard's `data.js` form (`window.BENCHMARK_DATA = {...}`), picked by
file extension.

All mutation goes through `HistoryStore.locked()`, which holds an exclusive
lock file for the whole read-modify-write cycle and replaces the data file
atomically on exit.
"""

import copy
import json
import math
import os
import tempfile
import time
from contextlib import contextmanager
from pathlib import Path
from typing import Any, Dict, Iterator, List, Optional

from .compare import commit_id
from .errors import ConcurrentWriteConflict, StoreCorruption

DATA_JS_PREFIX = "window.BENCHMARK_DATA = "
LOCK_POLL_DELAYS_MS = [50, 100, 200, 300, 450, 700, 900]
DEFAULT_LOCK_TIMEOUT = 30.0
DEFAULT_STALE_LOCK_SECONDS = 600


def _sort_entries(entries: List[Dict[str, Any]]) -> None:
    entries.sort(key=lambda e: e.get("date", 0))


def _entry_problem(entry: Any) -> Optional[str]:
    """Describe what makes a stored entry unusable, or None if it is well formed."""
    if not isinstance(entry, dict) or not commit_id(entry):
        return "has no commit id"
    date = entry.get("date")
    if isinstance(date, bool) or not isinstance(date, (int, float)) or not math.isfinite(date):
        return f"has a non-numeric date {date!r}"
    benches = entry.get("benches")
    if not isinstance(benches, list):
        return "has no benches list"
    for bench in benches:
        if not isinstance(bench, dict) or not isinstance(bench.get("name"), str):
            return "has a bench without a name"
    return None


class HistoryDocument:
    """In-memory copy of the store file, mutated inside a lock."""

    def __init__(self, data: Optional[Dict[str, Any]] = None):
        self.data = data if data is not None else {"entries": {}}
        self.dirty = False

    @property
    def entries(self) -> Dict[str, List[Dict[str, Any]]]:
        return self.data["entries"]

    def suites(self) -> List[str]:
        return list(self.entries)

    def query(self, suite: str) -> List[Dict[str, Any]]:
        return copy.deepcopy(self.entries.get(suite, []))

    def append(self, suite: str, entry: Dict[str, Any]) -> bool:
        """
        Insert `entry`, or replace the stored entry with the same commit id.

        Returns True when an existing entry was replaced. The suite is
        re-sorted by `date` afterwards either way.
        """
        entries = self.entries.setdefault(suite, [])
        stored = copy.deepcopy(entry)
        cid = commit_id(entry)

        matches = [idx for idx, existing in enumerate(entries) if commit_id(existing) == cid]
        replaced = bool(matches)
        if replaced:
            entries[matches[0]] = stored
            # Older files may hold repeated rows for one commit; keep only the new one
            for idx in reversed(matches[1:]):
                del entries[idx]
        else:
            entries.append(stored)

        _sort_entries(entries)
        self.dirty = True
        return replaced


class HistoryStore:
    """File-backed history store with a single-writer lock."""

    def __init__(
        self,
        path,
        lock_timeout: float = DEFAULT_LOCK_TIMEOUT,
        stale_lock_seconds: Optional[float] = DEFAULT_STALE_LOCK_SECONDS,
    ):
        self.path = Path(path)
        self.lock_path = self.path.with_name(self.path.name + ".lock")
        self.break_path = self.path.with_name(self.path.name + ".lock.break")
        self.lock_timeout = lock_timeout
        self.stale_lock_seconds = stale_lock_seconds

    @property
    def is_data_js(self) -> bool:
        return self.path.suffix == ".js"

    # Reading

    def _parse(self, text: str) -> Dict[str, Any]:
        body = text.strip()
        if self.is_data_js:
            if not body.startswith(DATA_JS_PREFIX.strip()):
                raise StoreCorruption(f"{self.path}: missing '{DATA_JS_PREFIX.strip()}' prefix")
            body = body[len(DATA_JS_PREFIX.strip()):].strip().rstrip(";")
        try:
            data = json.loads(body)
        except ValueError as e:
            raise StoreCorruption(f"{self.path}: not valid JSON ({e})")

        if not isinstance(data, dict) or not isinstance(data.get("entries"), dict):
            raise StoreCorruption(f"{self.path}: expected an object with an 'entries' object")
        for suite, entries in data["entries"].items():
            if not isinstance(entries, list):
                raise StoreCorruption(f"{self.path}: suite {suite!r} is not a list")
            for idx, entry in enumerate(entries):
                problem = _entry_problem(entry)
                if problem:
                    raise StoreCorruption(f"{self.path}: suite {suite!r} entry {idx} {problem}")
        return data

    def load(self) -> HistoryDocument:
        """Read the store. A missing file is an empty store; a broken one is StoreCorruption."""
        try:
            text = self.path.read_text()
        except FileNotFoundError:
            return HistoryDocument()
        except (OSError, UnicodeDecodeError) as e:
            raise StoreCorruption(f"{self.path}: cannot read ({e})")
        return HistoryDocument(self._parse(text))

    def suites(self) -> List[str]:
        return self.load().suites()

    def query(self, suite: str) -> List[Dict[str, Any]]:
        """Ordered entries of `suite`; an unknown suite yields an empty list."""
        return self.load().query(suite)

    # Writing

    def _serialize(self, doc: HistoryDocument) -> str:
        if self.is_data_js:
            doc.data["lastUpdate"] = int(time.time() * 1000)
            return DATA_JS_PREFIX + json.dumps(doc.data, indent=2) + "\n"
        return json.dumps(doc.data, indent=2) + "\n"

    def _write(self, doc: HistoryDocument) -> None:
        self.path.parent.mkdir(parents=True, exist_ok=True)
        fd, tmp_path = tempfile.mkstemp(dir=str(self.path.parent), prefix=self.path.name + ".", suffix=".tmp")
        try:
            with os.fdopen(fd, "w") as f:
                f.write(self._serialize(doc))
                f.flush()
                os.fsync(f.fileno())
            os.replace(tmp_path, self.path)
        except BaseException:
            if os.path.exists(tmp_path):
                os.unlink(tmp_path)
            raise

    # Locking

    def _lock_age(self, path: Path) -> Optional[float]:
        try:
            return time.time() - path.stat().st_mtime
        except FileNotFoundError:
            return None

    def _break_stale_lock(self) -> bool:
        """
        Remove the lock file if it is older than `stale_lock_seconds`.

        Breakers take `<path>.lock.break` first and re-check the age while
        holding it, so a lock another waiter created after the first look is
        left alone. Returns True when the lock file is gone.
        """
        if not self.stale_lock_seconds:
            return False
        age = self._lock_age(self.lock_path)
        if age is None:
            return True
        if age < self.stale_lock_seconds:
            return False

        try:
            fd = os.open(str(self.break_path), os.O_CREAT | os.O_EXCL | os.O_WRONLY, 0o644)
        except FileExistsError:
            breaker_age = self._lock_age(self.break_path)
            if breaker_age is not None and breaker_age >= self.stale_lock_seconds:
                try:
                    self.break_path.unlink()
                except FileNotFoundError:
                    pass
            return False
        os.close(fd)

        try:
            age = self._lock_age(self.lock_path)
            if age is None:
                return True
            if age < self.stale_lock_seconds:
                return False
            try:
                self.lock_path.unlink()
            except FileNotFoundError:
                pass
            return True
        finally:
            self.break_path.unlink()

    def _acquire_lock(self) -> None:
        self.lock_path.parent.mkdir(parents=True, exist_ok=True)
        deadline = time.monotonic() + self.lock_timeout
        attempt = 0
        while True:
            try:
                fd = os.open(str(self.lock_path), os.O_CREAT | os.O_EXCL | os.O_WRONLY, 0o644)
            except FileExistsError:
                if self._break_stale_lock():
                    continue
                remaining = deadline - time.monotonic()
                if remaining <= 0:
                    raise ConcurrentWriteConflict(
                        f"{self.path}: another writer holds {self.lock_path.name} "
                        f"(waited {self.lock_timeout:g}s); retry later"
                    )
                delay = LOCK_POLL_DELAYS_MS[min(attempt, len(LOCK_POLL_DELAYS_MS) - 1)] / 1000
                time.sleep(min(delay, remaining))
                attempt += 1
                continue
            with os.fdopen(fd, "w") as f:
                f.write(f"{os.getpid()}\n")
            return

    def _release_lock(self) -> None:
        try:
            self.lock_path.unlink()
        except FileNotFoundError:
            pass

    @contextmanager
    def locked(self) -> Iterator[HistoryDocument]:
        """
        Hold the writer lock for a read-modify-write cycle.

        Yields the freshly loaded document; if it was modified and the block
        exits cleanly, it is written back before the lock is released.
        """
        self._acquire_lock()
        try:
            doc = self.load()
            yield doc
            if doc.dirty:
                self._write(doc)
        finally:
            self._release_lock()

    def append(self, suite: str, entry: Dict[str, Any]) -> bool:
        """Upsert one entry under the lock. Returns True if it replaced an existing commit."""
        with self.locked() as doc:
            return doc.append(suite, entry)
