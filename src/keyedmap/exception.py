from typing import Any, Optional

import attr


class KeyedMapError(Exception):
    """Base class for all errors raised by keyedmap collections and accessors.

    Errors raised by caller-supplied callbacks are never wrapped in a
    `KeyedMapError`; they propagate to the caller unchanged."""


@attr.define(str=False)
class InvalidKeyError(KeyedMapError, TypeError):
    """Raised when a key cannot be held by a collection under its key discipline,
    such as an unhashable key in an `OrderedMap` or a key which does not support
    weak references in a `WeakMap`."""

    message: str
    key: Any
    discipline: Optional[str] = None

    def __str__(self):
        if self.discipline is None:
            return f"{self.message}: {self.key!r}"
        return f"{self.message} ({self.discipline}): {self.key!r}"


@attr.define(str=False)
class InvocationError(KeyedMapError, TypeError):
    """Raised when a handler which must be called is not callable."""

    message: str
    handler: Any

    def __str__(self):
        return f"{self.message}: {self.handler!r}"


@attr.define(str=False)
class KeyNotFoundError(KeyedMapError, KeyError):
    """Raised by `emplace` when the key is absent and no `insert` hook was given."""

    message: str
    key: Any

    def __str__(self):
        return f"{self.message}: {self.key!r}"
