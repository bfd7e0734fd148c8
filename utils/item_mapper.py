# Bidirectional mapping between caller item values and dense integer ids
# Ids are 0-based and assigned in first-seen order; everything below the mapper works on ints

from definition.mining_errors import FrozenMapperError, UnmappedIdentifierError


class ItemMapper:
    def __init__(self, frozen=False):
        self._item_to_id = {}
        self._id_to_item = {}
        self._next_id = 0
        self.frozen = frozen

    @classmethod
    def from_snapshot(cls, snapshot, frozen=True):
        """
        Rebuilds a mapper from `snapshot()` output.
        Worker processes receive a frozen copy: they may decode ids but never register items.
        """
        mapper = cls(frozen=frozen)
        mapper._item_to_id = dict(snapshot['item_to_id'])
        mapper._id_to_item = dict(snapshot['id_to_item'])
        mapper._next_id = snapshot['next_id']
        return mapper

    def snapshot(self):
        return {
            'item_to_id': dict(self._item_to_id),
            'id_to_item': dict(self._id_to_item),
            'next_id': self._next_id,
        }

    def get_id(self, item):
        """Returns the id of `item`, registering it first if it has not been seen."""
        item_id = self._item_to_id.get(item)
        if item_id is not None:
            return item_id
        if self.frozen:
            raise FrozenMapperError(f"Cannot register new item {item!r} on a frozen ItemMapper")
        item_id = self._next_id
        self._next_id += 1
        self._item_to_id[item] = item_id
        self._id_to_item[item_id] = item
        return item_id

    def lookup_id(self, item):
        # Non-registering lookup, None for unknown items
        return self._item_to_id.get(item)

    def get_item(self, item_id):
        if item_id not in self._id_to_item:
            raise UnmappedIdentifierError(f"No item found for ID: {item_id}")
        return self._id_to_item[item_id]

    def map_transaction(self, transaction):
        return [self.get_id(item) for item in transaction]

    def unmap_itemset(self, itemset):
        return [self.get_item(item_id) for item_id in itemset]

    def has_item(self, item):
        return item in self._item_to_id

    def has_id(self, item_id):
        return item_id in self._id_to_item

    @property
    def item_count(self):
        return len(self._item_to_id)

    @property
    def next_id(self):
        return self._next_id

    def __len__(self):
        return len(self._item_to_id)

    def clear(self):
        if self.frozen:
            raise FrozenMapperError("Cannot clear a frozen ItemMapper")
        self._item_to_id.clear()
        self._id_to_item.clear()
        self._next_id = 0
