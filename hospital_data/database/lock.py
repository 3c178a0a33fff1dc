"""
Reentrant reader/writer lock guarding one store's in-memory records
"""
from contextlib import contextmanager
from threading import Condition, Lock, get_ident
from typing import Dict, Iterator, Optional


class ReadWriteLock:
    """
    Thread-safe reader/writer lock with recursion support

    - Many readers at once, one writer at a time
    - Waiting writers block new readers (no writer starvation)
    - The writing thread may take the read or write lock again
    - A reading thread may take the read lock again, even with writers waiting
    - Upgrading read -> write from the same thread raises RuntimeError instead of deadlocking
    """
    def __init__(self):
        self._cond = Condition(Lock())
        self._readers: Dict[int, int] = {}
        self._writer: Optional[int] = None
        self._writer_depth = 0
        self._writers_waiting = 0

    def acquire_read(self):
        me = get_ident()
        with self._cond:
            if self._writer == me:
                self._writer_depth += 1
                return
            if me in self._readers:
                self._readers[me] += 1
                return
            while self._writer is not None or self._writers_waiting:
                self._cond.wait()
            self._readers[me] = 1

    def release_read(self):
        me = get_ident()
        with self._cond:
            if self._writer == me:
                self._release_writer_level()
                return
            depth = self._readers.get(me)
            if not depth:
                raise RuntimeError("Read lock released by a thread that does not hold it")
            if depth > 1:
                self._readers[me] = depth - 1
                return
            del self._readers[me]
            if not self._readers:
                self._cond.notify_all()

    def acquire_write(self):
        me = get_ident()
        with self._cond:
            if self._writer == me:
                self._writer_depth += 1
                return
            if me in self._readers:
                raise RuntimeError("Cannot upgrade a read lock to a write lock")
            self._writers_waiting += 1
            try:
                while self._writer is not None or self._readers:
                    self._cond.wait()
            finally:
                self._writers_waiting -= 1
            self._writer = me
            self._writer_depth = 1

    def release_write(self):
        with self._cond:
            if self._writer != get_ident():
                raise RuntimeError("Write lock released by a thread that does not hold it")
            self._release_writer_level()

    def _release_writer_level(self):
        # Caller holds self._cond
        self._writer_depth -= 1
        if self._writer_depth == 0:
            self._writer = None
            self._cond.notify_all()

    @property
    def write_held(self) -> bool:
        """True when the calling thread holds the write lock"""
        with self._cond:
            return self._writer == get_ident()

    @contextmanager
    def read_locked(self) -> Iterator[None]:
        self.acquire_read()
        try:
            yield
        finally:
            self.release_read()

    @contextmanager
    def write_locked(self) -> Iterator[None]:
        self.acquire_write()
        try:
            yield
        finally:
            self.release_write()
