import logging

import pytest

from keyedmap.logconfig import TRACE
from keyedmap.map import OrderedMap
from keyedmap.weakmap import WeakMap


class Key:
    """Weakly referenceable key with a readable repr."""

    def __init__(self, name: str) -> None:
        self.name = name

    def __repr__(self):
        return f"Key({self.name!r})"


@pytest.fixture
def make_key():
    return Key


@pytest.fixture
def omap() -> OrderedMap:
    return OrderedMap()


@pytest.fixture
def wmap() -> WeakMap:
    return WeakMap()


@pytest.fixture(params=["ordered", "weak"])
def coll_and_keys(request):
    """A fresh empty collection of each kind with two keys it can hold."""
    if request.param == "ordered":
        return OrderedMap(), "k1", "k2"
    return WeakMap(), Key("k1"), Key("k2")


@pytest.fixture
def trace_logs(caplog):
    caplog.set_level(TRACE, logger="keyedmap")
    return caplog


@pytest.fixture
def reset_keyedmap_logger():
    logger = logging.getLogger("keyedmap")
    handlers, level = list(logger.handlers), logger.level
    try:
        yield logger
    finally:
        logger.handlers = handlers
        logger.setLevel(level)
