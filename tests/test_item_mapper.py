import pickle

import pytest

from definition.mining_errors import FrozenMapperError, MiningError, UnmappedIdentifierError
from utils.item_mapper import ItemMapper


def test_ids_are_dense_and_first_seen():
    mapper = ItemMapper()
    assert mapper.map_transaction(['b', 'a', 'b', 'c']) == [0, 1, 0, 2]
    assert mapper.item_count == 3
    assert len(mapper) == 3
    assert mapper.next_id == 3


def test_round_trip():
    mapper = ItemMapper()
    ids = mapper.map_transaction(['x', 'y'])
    assert mapper.unmap_itemset(ids) == ['x', 'y']
    assert mapper.get_item(1) == 'y'


def test_lookup_does_not_register():
    mapper = ItemMapper()
    assert mapper.lookup_id('missing') is None
    assert len(mapper) == 0
    assert not mapper.has_item('missing')


def test_unknown_id_raises():
    mapper = ItemMapper()
    with pytest.raises(UnmappedIdentifierError):
        mapper.get_item(0)
    with pytest.raises(LookupError):
        mapper.unmap_itemset([3])


def test_has_item_and_has_id():
    mapper = ItemMapper()
    mapper.get_id(('tuple', 'item'))
    assert mapper.has_item(('tuple', 'item'))
    assert mapper.has_id(0)
    assert not mapper.has_id(1)


def test_clear_resets_ids():
    mapper = ItemMapper()
    mapper.map_transaction(['a', 'b'])
    mapper.clear()
    assert len(mapper) == 0
    assert mapper.get_id('c') == 0


class TestSnapshot:
    def setup_method(self):
        self.mapper = ItemMapper()
        self.mapper.map_transaction(['milk', 'bread', 3])

    def test_snapshot_survives_pickling(self):
        restored = ItemMapper.from_snapshot(pickle.loads(pickle.dumps(self.mapper.snapshot())))
        assert restored.get_item(2) == 3
        assert restored.get_id('bread') == 1
        assert restored.next_id == 3

    def test_frozen_copy_refuses_new_items(self):
        restored = ItemMapper.from_snapshot(self.mapper.snapshot())
        assert restored.frozen
        with pytest.raises(FrozenMapperError):
            restored.get_id('eggs')
        with pytest.raises(FrozenMapperError):
            restored.clear()
        # Known items still resolve and nothing was registered
        assert restored.get_id('milk') == 0
        assert len(restored) == 3

    def test_frozen_write_is_not_a_lookup_error(self):
        restored = ItemMapper.from_snapshot(self.mapper.snapshot())
        with pytest.raises(Exception) as excinfo:
            restored.get_id('eggs')
        assert isinstance(excinfo.value, MiningError)
        assert isinstance(excinfo.value, RuntimeError)
        assert not isinstance(excinfo.value, LookupError)

    def test_snapshot_is_independent(self):
        snapshot = self.mapper.snapshot()
        self.mapper.get_id('eggs')
        assert 'eggs' not in snapshot['item_to_id']

    def test_unfrozen_restore(self):
        restored = ItemMapper.from_snapshot(self.mapper.snapshot(), frozen=False)
        assert restored.get_id('eggs') == 3
