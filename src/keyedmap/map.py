from collections.abc import Iterable, Iterator, Mapping, MutableMapping
from typing import Any, Callable, Optional, TypeVar, Union

import attr
from typing_extensions import Self

from keyedmap.access import KeyedAccessBase
from keyedmap.keys import VALUE_KEYS, KeyDiscipline

T = TypeVar("T")
K = TypeVar("K")
V = TypeVar("V")


@attr.define(eq=False)
class Entry:
    """Storage cell of an `OrderedMap`. Cells are compared by identity."""

    key: Any
    value: Any
    live: bool = True


class OrderedMap(KeyedAccessBase[K, V], MutableMapping[K, V]):
    """Mutable map which remembers the order in which keys were first added.

    Keys are compared by value (see `keyedmap.keys.ValueKeyDiscipline`), so every
    NaN float is the same key and `-0.0` is stored as `0.0`. Setting the value of a
    present key keeps its position; deleting a key and adding it again moves it to
    the end."""

    __slots__ = ("_cells", "_revision", "__weakref__")

    def __init__(
        self,
        members: Union[Mapping[K, V], Iterable[tuple[K, V]], None] = None,
    ) -> None:
        self._cells: dict[Any, Entry] = {}
        self._revision = 0
        if members is not None:
            items = members.items() if isinstance(members, Mapping) else members
            for k, v in items:
                self[k] = v

    @classmethod
    def group_by(cls, items: Iterable[T], key_fn: Callable[[T], K]) -> Self:
        """Group `items` into lists keyed by `key_fn(item)`. Groups are ordered by
        the first appearance of their key."""
        groups = cls()
        for item in items:
            groups.get_or_insert_computed(key_fn(item), lambda _: []).append(item)
        return groups

    @property
    def discipline(self) -> KeyDiscipline:
        return VALUE_KEYS

    @property
    def revision(self) -> int:
        return self._revision

    def lookup_cell(self, key: K) -> Optional[Entry]:
        return self._cells.get(VALUE_KEYS.lookup_key(key))

    def append_cell(self, key: K, value: V) -> Entry:
        cell = Entry(key, value)
        self._cells[VALUE_KEYS.lookup_key(key)] = cell
        self._revision += 1
        return cell

    def _retire(self, lookup_key: Any) -> None:
        cell = self._cells.pop(lookup_key)
        cell.live = False
        self._revision += 1

    def __contains__(self, key):
        return self.lookup_cell(VALUE_KEYS.canonicalize(key)) is not None

    def __delitem__(self, key: K) -> None:
        canonical = VALUE_KEYS.canonicalize(key)
        if self.lookup_cell(canonical) is None:
            raise KeyError(key)
        self._retire(VALUE_KEYS.lookup_key(canonical))

    def __getitem__(self, key: K) -> V:
        cell = self.lookup_cell(VALUE_KEYS.canonicalize(key))
        if cell is None:
            raise KeyError(key)
        return cell.value

    def __iter__(self) -> Iterator[K]:
        return (cell.key for cell in self._cells.values())

    def __len__(self) -> int:
        return len(self._cells)

    def __repr__(self):
        contents = ", ".join(
            f"{cell.key!r}: {cell.value!r}" for cell in self._cells.values()
        )
        return f"{type(self).__name__}({{{contents}}})"

    def __setitem__(self, key: K, value: V) -> None:
        canonical = VALUE_KEYS.canonicalize(key)
        cell = self.lookup_cell(canonical)
        if cell is None:
            self.append_cell(canonical, value)
        else:
            cell.value = value

    def clear(self) -> None:
        for cell in self._cells.values():
            cell.live = False
        if self._cells:
            self._cells = {}
            self._revision += 1

    def delete(self, key: K) -> bool:
        """Remove `key`, returning True if it was present."""
        canonical = VALUE_KEYS.canonicalize(key)
        if self.lookup_cell(canonical) is None:
            return False
        self._retire(VALUE_KEYS.lookup_key(canonical))
        return True

    def entries(self) -> list[Entry]:
        """Return the live cells of this map in order.

        The returned list is a snapshot, so the map may be modified while
        iterating over it."""
        return list(self._cells.values())

    def entry(self, key: K) -> Optional[Entry]:
        return self.lookup_cell(VALUE_KEYS.canonicalize(key))

    def get(self, key, default=None):
        cell = self.lookup_cell(VALUE_KEYS.canonicalize(key))
        if cell is None:
            return default
        return cell.value

    def has(self, key: K) -> bool:
        return key in self

    def set(self, key: K, value: V) -> Self:
        self[key] = value
        return self


def ordered_map(*kvs) -> OrderedMap:
    """Creates a new map from alternating keys and values."""
    if len(kvs) % 2 != 0:
        raise ValueError("ordered_map requires an even number of arguments")
    return OrderedMap(zip(kvs[::2], kvs[1::2]))


def m(**kvs) -> OrderedMap[str, Any]:
    """Creates a new map from keyword arguments."""
    return OrderedMap(kvs)
