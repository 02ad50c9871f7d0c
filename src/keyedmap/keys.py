import math
import weakref
from abc import ABC, abstractmethod
from collections.abc import Hashable
from decimal import Decimal
from typing import Any, Final, Optional

import attr

from keyedmap.exception import InvalidKeyError

# All float NaN keys are stored as this one object so `dict` lookups, which check
# identity before equality, treat every NaN as the same key.
NAN: Final = float("nan")
DECIMAL_NAN: Final = Decimal("NaN")


def _canonical_float(x: float) -> float:
    if math.isnan(x):
        return NAN
    if x == 0.0:
        return 0.0
    return x


@attr.frozen
class _ComplexNaN:
    """Lookup token for a complex key with a NaN part. NaN parts are None."""

    real: Optional[float]
    imag: Optional[float]


class KeyDiscipline(ABC):
    """A key discipline decides which keys a collection may hold, how those keys
    are normalized before they are compared, and the token used to index them in
    the collection's backing storage.

    Collections are parameterized by a discipline rather than branching on the
    kind of collection in the accessors."""

    __slots__ = ()

    name: str

    @abstractmethod
    def canonicalize(self, key: Any) -> Any:
        """Return the normalized form of `key` which will be stored in and passed
        to callbacks by the collection.

        Raise `InvalidKeyError` if the key cannot be held."""
        raise NotImplementedError()

    @abstractmethod
    def lookup_key(self, key: Any) -> Hashable:
        """Return the token indexing the canonical `key` in backing storage."""
        raise NotImplementedError()

    def __repr__(self):
        return f"<{type(self).__name__} {self.name}>"


class ValueKeyDiscipline(KeyDiscipline):
    """Keys are compared by value with Python equality, except that every float
    NaN is equal to every other NaN. The same holds for Decimal NaNs and for complex
    numbers whose NaN parts are in the same places. Negative zero is stored as
    positive zero, including in complex parts and Decimals.

    Keys must be hashable."""

    __slots__ = ()

    name = "value"

    def canonicalize(self, key: Any) -> Any:
        if isinstance(key, float):
            return _canonical_float(key)
        if isinstance(key, complex):
            return complex(_canonical_float(key.real), _canonical_float(key.imag))
        if isinstance(key, Decimal):
            if key.is_qnan():
                return DECIMAL_NAN
            if key.is_zero() and key.is_signed():
                return key.copy_abs()

        try:
            hash(key)
        except TypeError as e:
            raise InvalidKeyError("Key must be hashable", key, self.name) from e
        return key

    def lookup_key(self, key: Any) -> Hashable:
        # Complex NaNs are rebuilt on every canonicalization, so they cannot rely
        # on a shared object the way float NaN does.
        if isinstance(key, complex) and (math.isnan(key.real) or math.isnan(key.imag)):
            return _ComplexNaN(
                None if math.isnan(key.real) else key.real,
                None if math.isnan(key.imag) else key.imag,
            )
        return key


class WeakKeyDiscipline(KeyDiscipline):
    """Keys are compared by identity and must support weak references, so that
    the collection never keeps a key alive on its own."""

    __slots__ = ()

    name = "weak"

    def canonicalize(self, key: Any) -> Any:
        try:
            weakref.ref(key)
        except TypeError as e:
            raise InvalidKeyError(
                "Key must support weak references", key, self.name
            ) from e
        return key

    def lookup_key(self, key: Any) -> Hashable:
        return id(key)


VALUE_KEYS: Final = ValueKeyDiscipline()
WEAK_KEYS: Final = WeakKeyDiscipline()
