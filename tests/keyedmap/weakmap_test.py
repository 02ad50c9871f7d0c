import gc
import weakref

import pytest

from keyedmap.exception import InvalidKeyError
from keyedmap.interfaces import IKeyedCollection
from keyedmap.keys import WEAK_KEYS
from keyedmap.map import m
from keyedmap.weakmap import WeakEntry, WeakMap


def test_weak_map_interface_membership():
    assert isinstance(WeakMap(), IKeyedCollection)
    assert WEAK_KEYS is WeakMap().discipline


def test_weak_map_is_not_iterable(wmap):
    with pytest.raises(TypeError):
        iter(wmap)


def test_weak_map_repr(wmap, make_key):
    wmap[make_key("a")] = 1
    assert repr(wmap).startswith("<WeakMap at 0x")
    assert repr(wmap).endswith("with 0 entries>")


class TestWeakMapAccess:
    def test_set_and_get(self, wmap, make_key):
        k = make_key("k")
        assert wmap is wmap.set(k, 1)
        assert 1 == wmap[k]
        assert 1 == wmap.get(k)
        assert True is wmap.has(k)
        assert k in wmap

    def test_keys_compared_by_identity(self, wmap):
        a, b = m(x=1), m(x=1)
        assert a == b
        wmap[a] = "a"
        assert "a" == wmap.get(a)
        assert None is wmap.get(b)
        assert b not in wmap

    def test_missing_key(self, wmap, make_key):
        with pytest.raises(KeyError):
            wmap[make_key("missing")]
        assert "default" == wmap.get(make_key("missing"), "default")

    @pytest.mark.parametrize("key", [1, "str", (1, 2), None, 1.5])
    def test_unholdable_keys(self, wmap, key):
        with pytest.raises(InvalidKeyError) as e:
            wmap[key] = 1
        assert "weak" == e.value.discipline
        assert None is wmap.get(key)
        assert False is wmap.has(key)
        assert False is wmap.delete(key)

    def test_entry_cell(self, wmap, make_key):
        k = make_key("k")
        wmap[k] = 1
        cell = wmap.lookup_cell(k)
        assert isinstance(cell, WeakEntry)
        assert k is cell.key
        assert cell.live


class TestWeakMapMutation:
    def test_set_existing_updates_value(self, wmap, make_key):
        k = make_key("k")
        wmap[k] = 1
        cell = wmap.lookup_cell(k)
        wmap[k] = 2
        assert cell is wmap.lookup_cell(k)
        assert 2 == wmap[k]
        assert 1 == len(wmap)

    def test_delete(self, wmap, make_key):
        k = make_key("k")
        wmap[k] = 1
        cell = wmap.lookup_cell(k)
        assert True is wmap.delete(k)
        assert False is wmap.delete(k)
        assert False is cell.live
        assert 0 == len(wmap)

    def test_delitem(self, wmap, make_key):
        k = make_key("k")
        wmap[k] = 1
        del wmap[k]
        with pytest.raises(KeyError):
            del wmap[k]

    def test_entry_removed_when_key_collected(self, wmap, make_key):
        k = make_key("k")
        wmap[k] = "value"
        cell = wmap.lookup_cell(k)
        revision = wmap.revision

        del k
        gc.collect()

        assert 0 == len(wmap)
        assert False is cell.live
        assert None is cell.key
        assert revision < wmap.revision

    def test_deleted_entry_not_removed_again_on_collection(self, wmap, make_key):
        k = make_key("k")
        wmap[k] = 1
        wmap.delete(k)
        wmap[k] = 2
        assert 2 == wmap[k]
        assert 1 == len(wmap)

        del k
        gc.collect()
        assert 0 == len(wmap)

    def test_entry_displaced_by_reused_id_is_retired(self, wmap, make_key):
        collected, k = make_key("collected"), make_key("k")
        # An entry whose key has gone, indexed under an id now used by `k`.
        stale = WeakEntry(weakref.KeyedRef(collected, wmap._remove, id(k)), "old")
        wmap._cells[id(k)] = stale

        assert None is wmap.get(k)
        wmap[k] = "new"
        assert False is stale.live
        assert "new" == wmap[k]
        assert 1 == len(wmap)

        del collected
        gc.collect()
        assert "new" == wmap[k]

    def test_map_does_not_keep_itself_alive(self, make_key):
        k = make_key("k")
        wmap = WeakMap()
        wmap[k] = 1
        ref = weakref.ref(wmap)
        del wmap
        gc.collect()
        assert None is ref()

        del k
        gc.collect()

    def test_computed_value_for_weak_key(self, wmap, make_key):
        k = make_key("k")
        assert "k!" == wmap.get_or_insert_computed(k, lambda key: f"{key.name}!")
        assert "k!" == wmap.get_or_insert_computed(k, lambda key: "other")
