from abc import ABC, abstractmethod
from typing import Generic, Optional, Protocol, TypeVar

from keyedmap.keys import KeyDiscipline

K = TypeVar("K")
V = TypeVar("V")


class StorageCell(Protocol[K, V]):
    """A single key/value pair owned by a keyed collection.

    A cell is `live` from the moment it is added to a collection until its key is
    removed. Once retired, a cell is never added back to a collection; storing
    the same key again produces a new cell."""

    @property
    def key(self) -> K: ...

    value: V

    @property
    def live(self) -> bool: ...


class IKeyedCollection(Generic[K, V], ABC):
    """``IKeyedCollection`` types are ordered collections of unique keys which can
    host the get-or-insert accessors in :py:mod:`keyedmap.access`.

    Every key passed to :py:meth:`lookup_cell` and :py:meth:`append_cell` has
    already been canonicalized by the collection's :py:attr:`discipline`."""

    __slots__ = ()

    @property
    @abstractmethod
    def discipline(self) -> KeyDiscipline:
        raise NotImplementedError()

    @property
    @abstractmethod
    def revision(self) -> int:
        """A counter which increases whenever a key is added to or removed from
        the collection."""
        raise NotImplementedError()

    @abstractmethod
    def lookup_cell(self, key: K) -> Optional[StorageCell[K, V]]:
        """Return the live cell for `key`, or None if `key` is absent."""
        raise NotImplementedError()

    @abstractmethod
    def append_cell(self, key: K, value: V) -> StorageCell[K, V]:
        """Add a new cell for `key` at the end of the collection and return it.

        Callers must ensure `key` is absent."""
        raise NotImplementedError()
