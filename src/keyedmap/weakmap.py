import weakref
from typing import Any, Optional, TypeVar

import attr
from typing_extensions import Self

from keyedmap.access import KeyedAccessBase
from keyedmap.keys import WEAK_KEYS, KeyDiscipline

K = TypeVar("K")
V = TypeVar("V")


@attr.define(eq=False)
class WeakEntry:
    """Storage cell of a `WeakMap`, referring to its key weakly."""

    ref: weakref.KeyedRef
    value: Any
    live: bool = True

    @property
    def key(self) -> Any:
        return self.ref()


class WeakMap(KeyedAccessBase[K, V]):
    """Map whose keys are compared by identity and held by weak reference.

    An entry is removed as soon as its key is garbage collected. Keys must support
    weak references; ints, strings, tuples and None cannot be stored. Reading,
    testing or deleting such keys is permitted and simply finds nothing.

    Weak maps cannot be iterated."""

    __slots__ = ("_cells", "_revision", "_remove", "__weakref__")

    __iter__ = None

    def __init__(self) -> None:
        self._cells: dict[int, WeakEntry] = {}
        self._revision = 0

        def remove(ref: weakref.KeyedRef, selfref=weakref.ref(self)) -> None:
            self = selfref()
            if self is not None:
                self._discard(ref)

        self._remove = remove

    @property
    def discipline(self) -> KeyDiscipline:
        return WEAK_KEYS

    @property
    def revision(self) -> int:
        return self._revision

    def _discard(self, ref: weakref.KeyedRef) -> None:
        cell = self._cells.get(ref.key)
        if cell is not None and cell.ref is ref:
            del self._cells[ref.key]
            cell.live = False
            self._revision += 1

    def lookup_cell(self, key: K) -> Optional[WeakEntry]:
        cell = self._cells.get(WEAK_KEYS.lookup_key(key))
        # The id of a collected key may be reused before its entry is discarded.
        if cell is not None and cell.ref() is key:
            return cell
        return None

    def append_cell(self, key: K, value: V) -> WeakEntry:
        token = WEAK_KEYS.lookup_key(key)
        stale = self._cells.get(token)
        if stale is not None:
            # Left behind by a collected key whose id was reused.
            stale.live = False
        cell = WeakEntry(weakref.KeyedRef(key, self._remove, token), value)
        self._cells[token] = cell
        self._revision += 1
        return cell

    def __contains__(self, key):
        return self.lookup_cell(key) is not None

    def __delitem__(self, key: K) -> None:
        cell = self.lookup_cell(key)
        if cell is None:
            raise KeyError(key)
        self._discard(cell.ref)

    def __getitem__(self, key: K) -> V:
        cell = self.lookup_cell(key)
        if cell is None:
            raise KeyError(key)
        return cell.value

    def __len__(self) -> int:
        return len(self._cells)

    def __repr__(self):
        return f"<{type(self).__name__} at {id(self):#x} with {len(self)} entries>"

    def __setitem__(self, key: K, value: V) -> None:
        key = WEAK_KEYS.canonicalize(key)
        cell = self.lookup_cell(key)
        if cell is None:
            self.append_cell(key, value)
        else:
            cell.value = value

    def delete(self, key: K) -> bool:
        """Remove `key`, returning True if it was present."""
        cell = self.lookup_cell(key)
        if cell is None:
            return False
        self._discard(cell.ref)
        return True

    def get(self, key, default=None):
        cell = self.lookup_cell(key)
        if cell is None:
            return default
        return cell.value

    def has(self, key: K) -> bool:
        return key in self

    def set(self, key: K, value: V) -> Self:
        self[key] = value
        return self
