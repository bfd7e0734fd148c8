# Algorithm: FP-Growth (Frequent Pattern Growth)
# Two passes over a rewindable source: item counting, then FP-Tree construction, then recursive mining
# Output: Frequent itemsets Dictionary; {frozenset({item1, item2, ...}): support_count, ...}

import logging
from collections import defaultdict
from numbers import Integral, Real

import pandas as pd

from Association_Rule.FP_Mining import (
    calculate_absolute_min_support,
    filter_frequent_items,
    mine_logic,
    order_transaction,
)
from Association_Rule.FP_Tree import FPTree
from Association_Rule.Parallel_Mining import run_parallel_mining
from Dataset_Choose_Rule.transaction_source import (
    CsvTransactionSource,
    DataFrameTransactionSource,
    ListTransactionSource,
    as_transaction_source,
)
from definition.mining_errors import ConfigurationError
from utils.item_mapper import ItemMapper

logger = logging.getLogger(__name__)


def _unique_items(transaction):
    # Repeated items inside one transaction count once; first occurrence order is kept
    return list(dict.fromkeys(transaction))


class FPGrowth:
    def __init__(self, min_support, parallelism=1, logger=None):
        """
        Args:
            min_support (float): >= 1.0 is an absolute transaction count, below 1.0 a fraction of transactions.
            parallelism (int): 1 mines in the calling process, N > 1 uses a pool of N worker processes.
            logger (logging.Logger): optional log sink, defaults to this module's logger.

        Raises:
            ConfigurationError: if min_support <= 0 or parallelism < 1.
        """
        if isinstance(min_support, bool) or not isinstance(min_support, Real):
            raise ConfigurationError(f"min_support must be a number, got {min_support!r}")
        if min_support <= 0:
            raise ConfigurationError(f"min_support must be greater than 0, got {min_support}")
        if isinstance(parallelism, bool) or not isinstance(parallelism, Integral):
            raise ConfigurationError(f"parallelism must be an integer, got {parallelism!r}")
        if parallelism < 1:
            raise ConfigurationError(f"parallelism must be at least 1, got {parallelism}")

        self.min_support = float(min_support)
        self.parallelism = int(parallelism)
        self.logger = logger if logger is not None else logging.getLogger(__name__)
        self.mapper = ItemMapper()
        self.transaction_count = 0
        self.absolute_min_support = None

    def mine(self, source):
        """
        Mines the frequent itemsets of a rewindable transaction source.

        Args:
            source: a TransactionSource, a zero-argument factory returning a fresh iterable per call,
                    an in-memory list of transactions or a pandas DataFrame. It is opened twice.

        Returns:
            tuple: (dict frozenset(items) -> support count, number of non-empty transactions).
        """
        source = as_transaction_source(source)
        log = self.logger
        start_time_total = pd.Timestamp.now()
        log.info(f"Starting frequent itemset mining with min_support: {self.min_support}")

        # Items are registered only here, during pass 1
        mapper = ItemMapper()
        self.mapper = mapper
        self.transaction_count = 0
        self.absolute_min_support = None

        # Pass 1: item frequencies and transaction count
        log.debug("Pass 1: Calculating initial item frequencies...")
        frequency = defaultdict(int)
        transaction_count = 0
        for transaction in source.open():
            if not transaction:
                continue
            transaction_count += 1
            for item in _unique_items(transaction):
                frequency[mapper.get_id(item)] += 1
        self.transaction_count = transaction_count

        if transaction_count == 0:
            log.warning("No non-empty transactions to mine")
            return {}, 0
        log.debug(f"Found {transaction_count} non-empty transactions and {len(frequency)} distinct items.")

        absolute_min_support = calculate_absolute_min_support(self.min_support, transaction_count)
        self.absolute_min_support = absolute_min_support

        log.debug("Filtering frequent items...")
        frequent_items = filter_frequent_items(frequency, absolute_min_support)
        if not frequent_items:
            log.warning(f"No frequent items found with min_support: {self.min_support}")
            return {}, transaction_count
        log.debug(f"Found {len(frequent_items)} frequent items (absolute min support: {absolute_min_support}).")

        # Pass 2: FP-Tree over filtered, frequency-ordered transactions
        log.debug("Pass 2: Building FP-Tree...")
        start_time_tree = pd.Timestamp.now()
        tree = FPTree(frequent_items)
        for transaction in source.open():
            item_ids = [mapper.lookup_id(item) for item in _unique_items(transaction)]
            ordered_items = order_transaction(item_ids, frequent_items)
            if ordered_items:
                tree.insert(ordered_items, 1)
        tree_duration = (pd.Timestamp.now() - start_time_tree).total_seconds()
        log.debug(f"FP-Tree built with {tree.node_count - 1} nodes. Time: {tree_duration:.2f}s")

        log.info("Starting recursive mining...")
        if self.parallelism == 1:
            mapped_itemsets = mine_logic(tree, (), frequent_items, absolute_min_support, mapper, log)
        else:
            mapped_itemsets = run_parallel_mining(
                tree, frequent_items, absolute_min_support, mapper, log, parallelism=self.parallelism,
            )
        del tree

        total_duration = (pd.Timestamp.now() - start_time_total).total_seconds()
        log.info(f"Finished mining. Found {len(mapped_itemsets)} frequent itemsets. Total time: {total_duration:.2f}s")

        frequent_itemsets = {
            frozenset(mapper.unmap_itemset(itemset)): support
            for itemset, support in mapped_itemsets.items()
        }
        return frequent_itemsets, transaction_count

    def mine_from_list(self, transactions):
        return self.mine(ListTransactionSource(transactions))

    def mine_from_csv(self, path, delimiter=',', quotechar='"', encoding='utf-8'):
        """Mines a basket CSV file (one transaction per line) without loading it into memory."""
        return self.mine(CsvTransactionSource(path, delimiter=delimiter, quotechar=quotechar, encoding=encoding))

    def mine_from_dataframe(self, df):
        # Each non-missing cell becomes the item 'column=value'
        return self.mine(DataFrameTransactionSource(df))


def fp_growth(transactions, min_support=0.5, parallelism=1):
    """Functional shortcut: returns (itemsets, transaction_count) for any accepted source form."""
    return FPGrowth(min_support=min_support, parallelism=parallelism).mine(transactions)
