# FP-Tree (Frequent Pattern Tree) over integer item ids
# Nodes live in flat per-tree lists; parent, children and same-item chain links are list indices

from collections import namedtuple

ROOT = 0
NO_NODE = -1

# One node of a single-path tree, as returned by FPTree.single_path_nodes()
PathNode = namedtuple('PathNode', ['index', 'item', 'count'])


class HeaderEntry:
    """Global support of one item plus head/tail indices of its same-item node chain."""

    __slots__ = ('count', 'head', 'tail')

    def __init__(self, count, head=NO_NODE, tail=NO_NODE):
        self.count = count
        self.head = head
        self.tail = tail

    def __repr__(self):
        return f"HeaderEntry(count={self.count}, head={self.head}, tail={self.tail})"


class FPTree:
    def __init__(self, frequency):
        """
        Args:
            frequency (dict): frequent item id -> support count. Only these items get a header entry;
                              transactions passed to insert() must already be filtered and ordered.
        """
        self.header_table = {item: HeaderEntry(count) for item, count in frequency.items()}

        # Root sits at index 0 and carries no item
        self._items = [None]
        self._counts = [0]
        self._parents = [NO_NODE]
        self._children = [{}]
        self._next = [NO_NODE]

    @property
    def root(self):
        return ROOT

    @property
    def node_count(self):
        # Includes the root
        return len(self._items)

    def item_of(self, node):
        return self._items[node]

    def count_of(self, node):
        return self._counts[node]

    def parent_of(self, node):
        return self._parents[node]

    def next_of(self, node):
        return self._next[node]

    def children_of(self, node):
        # item id -> child index
        return dict(self._children[node])

    def find_child(self, node, item):
        return self._children[node].get(item, NO_NODE)

    def _new_node(self, item, count, parent):
        index = len(self._items)
        self._items.append(item)
        self._counts.append(count)
        self._parents.append(parent)
        self._children.append({})
        self._next.append(NO_NODE)
        self._children[parent][item] = index
        return index

    def _link_header(self, item, node):
        # Tail insertion keeps the chain in discovery order
        header = self.header_table.get(item)
        if header is None:
            header = self.header_table[item] = HeaderEntry(0)
        if header.tail == NO_NODE:
            header.head = node
        else:
            self._next[header.tail] = node
        header.tail = node

    def insert(self, transaction, weight=1):
        """Adds one ordered transaction (or one aggregated conditional path) with the given weight."""
        current = ROOT
        for item in transaction:
            child = self._children[current].get(item)
            if child is not None:
                self._counts[child] += weight
            else:
                child = self._new_node(item, weight, current)
                self._link_header(item, child)
            current = child

    def add_transactions(self, transactions):
        for transaction in transactions:
            if transaction:
                self.insert(transaction, 1)
        return self

    def add_weighted_transactions(self, weighted_transactions):
        # One insert per distinct path; weights are never unrolled into repeated unit inserts
        for path, weight in weighted_transactions.items():
            if path:
                self.insert(path, weight)
        return self

    def chain(self, item):
        """Yields every node index holding `item`, head to tail."""
        header = self.header_table.get(item)
        node = header.head if header is not None else NO_NODE
        while node != NO_NODE:
            yield node
            node = self._next[node]

    def find_paths(self, item):
        """
        Builds the conditional pattern base of `item`.

        Returns:
            dict: root-to-node ancestor path (tuple of item ids, excluding `item`) -> summed count
                  of the chain nodes sharing that path. Nodes directly under the root have no path.
        """
        pattern_bases = {}
        for node in self.chain(item):
            path = []
            ancestor = self._parents[node]
            while ancestor != ROOT:
                path.append(self._items[ancestor])
                ancestor = self._parents[ancestor]
            if path:
                path.reverse()
                key = tuple(path)
                pattern_bases[key] = pattern_bases.get(key, 0) + self._counts[node]
        return pattern_bases

    def is_single_path(self):
        current = ROOT
        while self._children[current]:
            if len(self._children[current]) > 1:
                return False
            current = next(iter(self._children[current].values()))
        return True

    def single_path_nodes(self):
        # Only meaningful when is_single_path() holds
        nodes = []
        current = ROOT
        while self._children[current]:
            current = next(iter(self._children[current].values()))
            nodes.append(PathNode(current, self._items[current], self._counts[current]))
        return nodes

    def __repr__(self):
        return f"FPTree(items={len(self.header_table)}, nodes={self.node_count - 1})"
