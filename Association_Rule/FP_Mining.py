# Algorithm: FP-Growth recursive mining (conditional trees + single-path shortcut)
# Output: Frequent itemsets Dictionary; {(item_id, item_id, ...): support_count, ...}
# Shared by the sequential driver (FP_Growth.py) and the worker processes (Parallel_Mining.py)

import logging
import math
from collections import defaultdict
from itertools import combinations

from Association_Rule.FP_Tree import FPTree

logger = logging.getLogger(__name__)


def calculate_absolute_min_support(min_support, transaction_count):
    # >= 1.0 is an absolute count (truncated), below 1.0 a fraction of the transactions
    if min_support >= 1.0:
        return int(min_support)
    return int(math.ceil(transaction_count * min_support))


def filter_frequent_items(frequency, absolute_min_support):
    return {item: count for item, count in frequency.items() if count >= absolute_min_support}


def sort_items_ascending(frequency):
    # Mining order: ascending support, ties by ascending item id
    return sorted(frequency, key=lambda item: (frequency[item], item))


def order_transaction(transaction, frequent_items):
    """Drops non-frequent ids and sorts the rest by descending support (ties by ascending id)."""
    ordered = [item for item in transaction if item in frequent_items]
    ordered.sort(key=lambda item: (-frequent_items[item], item))
    return ordered


def conditional_frequency(pattern_bases):
    frequency = defaultdict(int)
    for path, weight in pattern_bases.items():
        for item in path:
            frequency[item] += weight
    return dict(frequency)


def build_conditional_transactions(pattern_bases, conditional_items):
    """
    Reorders and filters every path of a conditional pattern base without unrolling its weight.
    Paths that collapse onto the same ordered path have their weights summed.
    """
    weighted_transactions = {}
    for path, weight in pattern_bases.items():
        ordered_path = tuple(order_transaction(path, conditional_items))
        if ordered_path:
            weighted_transactions[ordered_path] = weighted_transactions.get(ordered_path, 0) + weight
    return weighted_transactions


def generate_subsets(nodes):
    # All 2^k - 1 non-empty subsets, smallest first
    subsets = []
    for size in range(1, len(nodes) + 1):
        subsets.extend(list(subset) for subset in combinations(nodes, size))
    return subsets


def describe_itemset(itemset, mapper):
    if mapper is None:
        return ', '.join(str(item) for item in itemset)
    return ', '.join(str(mapper.get_item(item)) for item in itemset)


def mine_conditional_tree(pattern_bases, conditional_items, prefix, absolute_min_support, mapper=None, log=None):
    """
    Builds the weighted conditional tree of `prefix` and mines it.

    Args:
        pattern_bases (dict): ancestor path tuple -> weight, as returned by FPTree.find_paths().
        conditional_items (dict): item id -> conditional support, already filtered by min support.
        prefix (tuple): itemset the conditional tree is conditioned on (already recorded by the caller).
        absolute_min_support (int): support threshold as a transaction count.
        mapper (ItemMapper): only used to make debug messages readable.

    Returns:
        dict: itemset tuple (prefix first) -> support, for every frequent extension of `prefix`.
    """
    log = log or logger
    frequent_itemsets = {}

    weighted_transactions = build_conditional_transactions(pattern_bases, conditional_items)
    if not weighted_transactions:
        return frequent_itemsets

    conditional_tree = FPTree(conditional_items).add_weighted_transactions(weighted_transactions)

    if conditional_tree.is_single_path():
        if log.isEnabledFor(logging.DEBUG):
            log.debug(f"    Single-path optimization applied for prefix: {describe_itemset(prefix, mapper)}")
        # Counts never increase from root to leaf, so the minimum is the deepest chosen node's count
        for subset in generate_subsets(conditional_tree.single_path_nodes()):
            itemset = prefix + tuple(node.item for node in subset)
            frequent_itemsets[itemset] = min(node.count for node in subset)
    else:
        frequent_itemsets.update(
            mine_logic(conditional_tree, prefix, conditional_items, absolute_min_support, mapper, log)
        )

    return frequent_itemsets


def mine_for_item(tree, item, prefix, frequency, absolute_min_support, mapper=None, log=None):
    log = log or logger
    new_prefix = prefix + (item,)
    support = frequency[item]
    frequent_itemsets = {new_prefix: support}

    if log.isEnabledFor(logging.DEBUG):
        log.debug(f"  Processing item: {describe_itemset((item,), mapper)} (support: {support})")

    pattern_bases = tree.find_paths(item)
    conditional_items = filter_frequent_items(conditional_frequency(pattern_bases), absolute_min_support)
    if conditional_items:
        frequent_itemsets.update(
            mine_conditional_tree(pattern_bases, conditional_items, new_prefix, absolute_min_support, mapper, log)
        )
    return frequent_itemsets


def mine_logic(tree, prefix, frequency, absolute_min_support, mapper=None, log=None):
    """Recursive FP-Growth step over every item of `frequency`; sibling branches never share a key."""
    log = log or logger
    prefix = tuple(prefix)
    frequent_itemsets = {}

    if log.isEnabledFor(logging.DEBUG):
        log.debug(f"Mining conditional tree for prefix: {describe_itemset(prefix, mapper)}")

    for item in sort_items_ascending(frequency):
        frequent_itemsets.update(
            mine_for_item(tree, item, prefix, frequency, absolute_min_support, mapper, log)
        )
    return frequent_itemsets
