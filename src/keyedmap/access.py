"""Get-or-insert accessors for keyed collections.

The accessors work against any :py:class:`keyedmap.interfaces.IKeyedCollection`.
Callbacks supplied to the computed variants run synchronously and may freely
mutate the collection they were called for, including adding or removing the very
key being computed. The accessors never hold on to a storage cell across a
callback: once the callback returns, the key is resolved again and the result is
written to whichever live cell exists at that point, or to a new cell at the end
of the collection if there is none."""

import inspect
from typing import Any, Callable, Optional, TypeVar

import attr

from keyedmap.exception import InvocationError, KeyNotFoundError
from keyedmap.interfaces import IKeyedCollection
from keyedmap.logconfig import TRACE, get_logger

logger = get_logger(__name__)

K = TypeVar("K")
V = TypeVar("V")

Coll = IKeyedCollection[Any, Any]
InsertFn = Callable[..., Any]
UpdateFn = Callable[..., Any]


def _callable_hook(_, a: attr.Attribute, value: Any) -> None:
    if value is not None and not callable(value):
        raise InvocationError(f"Emplace hook '{a.name}' must be callable", value)


@attr.frozen
class EmplaceHandler:
    """Named hooks for :py:func:`emplace`.

    ``insert(key, coll)`` computes the value for an absent key. ``update(existing,
    key, coll)`` computes a replacement for the value of a present key. Either hook
    may be omitted."""

    insert: Optional[InsertFn] = attr.field(default=None, validator=_callable_hook)
    update: Optional[UpdateFn] = attr.field(default=None, validator=_callable_hook)


def _accepted_args(fn: Any, args: tuple, role: str) -> int:
    """Return how many of the leading `args` `fn` can be called with, preferring
    the longest prefix. Hooks may ignore trailing arguments, so a callback taking
    no arguments at all is as valid as one taking the key.

    Raise `InvocationError` if `fn` is not callable or accepts none of the
    prefixes."""
    if not callable(fn):
        raise InvocationError(f"{role} must be callable", fn)

    try:
        sig = inspect.signature(fn)
    except (TypeError, ValueError):
        # Some builtins and extension types do not expose a signature.
        return len(args)

    for n in range(len(args), -1, -1):
        try:
            sig.bind(*args[:n])
        except TypeError:
            continue
        return n

    raise InvocationError(
        f"{role} must be callable with {len(args)} or fewer positional arguments", fn
    )


def _store(coll: Coll, key: Any, value: Any, revision: int) -> None:
    """Write `value` for `key` after a caller-supplied function has run, resolving
    `key` again rather than trusting any state observed before the call."""
    if coll.revision != revision:
        logger.log(
            TRACE,
            f"Collection was modified while computing the value for key {key!r}",
        )

    cell = coll.lookup_cell(key)
    if cell is not None:
        logger.log(TRACE, f"Updating existing entry for key {key!r}")
        cell.value = value
    else:
        coll.append_cell(key, value)


def get_or_insert(coll: Coll, key: Any, value: Any) -> Any:
    """Return the value for `key` in `coll`, first adding `value` under `key` if
    the key is absent.

    If the key is already present, `value` is discarded and `coll` is unchanged."""
    key = coll.discipline.canonicalize(key)
    cell = coll.lookup_cell(key)
    if cell is not None:
        return cell.value
    coll.append_cell(key, value)
    return value


def get_or_insert_computed(coll: Coll, key: Any, callback: Callable[..., Any]) -> Any:
    """Return the value for `key` in `coll`. If the key is absent, call
    `callback` once and store and return its result.

    `callback` is never called if the key is present. It is called with the
    canonical key if it accepts one argument, or with no arguments otherwise. It
    may mutate `coll`; if it leaves an entry for `key` behind, that entry's value
    is replaced by the result in place, otherwise the result is added at the end
    of `coll`. If `callback` raises, the exception propagates and nothing is
    stored for `key`."""
    nargs = _accepted_args(callback, (key,), "Callback")

    key = coll.discipline.canonicalize(key)
    cell = coll.lookup_cell(key)
    if cell is not None:
        return cell.value

    revision = coll.revision
    value = callback(*(key,)[:nargs])
    _store(coll, key, value, revision)
    return value


def emplace(coll: Coll, key: Any, handler: EmplaceHandler) -> Any:
    """Insert or update the value for `key` in `coll` using the hooks of `handler`,
    returning the value associated with `key` afterwards.

    If `key` is present and `handler` has no `update` hook, the existing value is
    returned unchanged. If `key` is absent and `handler` has no `insert` hook,
    `KeyNotFoundError` is raised.

    Hooks may omit trailing parameters: `insert` can take `(key, coll)`, `(key)` or
    nothing, and `update` can take `(existing, key, coll)` down to nothing."""
    if not isinstance(handler, EmplaceHandler):
        raise InvocationError("Handler must be an EmplaceHandler", handler)

    insert_args = (
        _accepted_args(handler.insert, (key, coll), "Insert hook")
        if handler.insert is not None
        else 0
    )
    update_args = (
        _accepted_args(handler.update, (None, key, coll), "Update hook")
        if handler.update is not None
        else 0
    )

    key = coll.discipline.canonicalize(key)
    cell = coll.lookup_cell(key)

    revision = coll.revision
    if cell is not None:
        if handler.update is None:
            return cell.value
        value = handler.update(*(cell.value, key, coll)[:update_args])
    elif handler.insert is not None:
        value = handler.insert(*(key, coll)[:insert_args])
    else:
        raise KeyNotFoundError("Key not found and no insert hook given", key)

    _store(coll, key, value, revision)
    return value


def upsert(
    coll: Coll,
    key: Any,
    update_fn: Optional[UpdateFn],
    insert_fn: Optional[InsertFn] = None,
) -> Any:
    """Positional form of :py:func:`emplace`."""
    return emplace(coll, key, EmplaceHandler(insert=insert_fn, update=update_fn))


class KeyedAccessBase(IKeyedCollection[K, V]):
    """Mixin for IKeyedCollection classes exposing the accessors as methods."""

    __slots__ = ()

    def get_or_insert(self, key: K, value: V) -> V:
        return get_or_insert(self, key, value)

    def get_or_insert_computed(self, key: K, callback: Callable[..., V]) -> V:
        return get_or_insert_computed(self, key, callback)

    def emplace(self, key: K, handler: EmplaceHandler) -> V:
        return emplace(self, key, handler)

    def upsert(
        self,
        key: K,
        update_fn: Optional[Callable[..., V]],
        insert_fn: Optional[Callable[..., V]] = None,
    ) -> V:
        return upsert(self, key, update_fn, insert_fn)
