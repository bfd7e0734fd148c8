# Association rule generation from mined frequent itemsets
# Level-wise (Apriori-style) walk over the consequent lattice of every itemset of size > 1
# Output: list of AssociationRule, A => C with support, confidence, lift, leverage, conviction

import logging

import numpy as np
import pandas as pd

from definition.mining_errors import ConfigurationError

logger = logging.getLogger(__name__)


def _item_sort_key(item):
    return (str(item), repr(item))


def _sorted_items(items):
    # Deterministic item order regardless of set iteration order
    return sorted(items, key=_item_sort_key)


def _itemset_sort_key(itemset):
    return [_item_sort_key(item) for item in _sorted_items(itemset)]


def _format_itemset(itemset):
    return '{' + ', '.join(str(item) for item in _sorted_items(itemset)) + '}'


class AssociationRule:
    """antecedent => consequent, both non-empty and disjoint."""

    def __init__(self, antecedent, consequent, support, confidence, lift, leverage, conviction):
        self.antecedent = frozenset(antecedent)
        self.consequent = frozenset(consequent)
        if not self.antecedent or not self.consequent:
            raise ValueError("Antecedent and consequent must be non-empty")
        self.support = support
        self.confidence = confidence
        self.lift = lift
        self.leverage = leverage
        self.conviction = conviction

    @property
    def itemset(self):
        return self.antecedent | self.consequent

    def __eq__(self, other):
        if not isinstance(other, AssociationRule):
            return NotImplemented
        return self.antecedent == other.antecedent and self.consequent == other.consequent

    def __hash__(self):
        return hash((self.antecedent, self.consequent))

    def __str__(self):
        return f"{_format_itemset(self.antecedent)} => {_format_itemset(self.consequent)}"

    def __repr__(self):
        return f"AssociationRule({self}, confidence={self.confidence:.3f})"

    def format_with_metrics(self):
        conviction = '∞' if np.isinf(self.conviction) else f"{self.conviction:.3f}"
        return (f"{self} [sup: {self.support:.3f}, conf: {self.confidence:.3f}, "
                f"lift: {self.lift:.2f}, lev: {self.leverage:.3f}, conv: {conviction}]")

    # Sort keys, strongest rule first: sorted(rules, key=AssociationRule.by_lift)
    @staticmethod
    def by_confidence(rule):
        return -rule.confidence

    @staticmethod
    def by_lift(rule):
        return -rule.lift

    @staticmethod
    def by_support(rule):
        return -rule.support


class RuleGenerator:
    def __init__(self, min_confidence, frequent_itemsets, total_transactions):
        """
        Args:
            min_confidence (float): rules below this confidence are not emitted.
            frequent_itemsets (dict): itemset (any iterable of items) -> support count, as returned by FPGrowth.mine().
            total_transactions (int): number of transactions the itemsets were mined from.
        """
        if frequent_itemsets and total_transactions <= 0:
            raise ConfigurationError(f"total_transactions must be positive, got {total_transactions}")
        self.min_confidence = min_confidence
        self.frequent_itemsets = frequent_itemsets
        self.total_transactions = total_transactions

        # Content-keyed lookup; insertion order of the input is kept
        self._support_cache = {}
        for itemset, support in frequent_itemsets.items():
            self._support_cache[frozenset(itemset)] = support

    def _create_rule(self, itemset, consequent):
        """Returns None when a support needed by the rule is missing."""
        antecedent = itemset - consequent
        itemset_count = self._support_cache.get(itemset)
        antecedent_count = self._support_cache.get(antecedent)
        consequent_count = self._support_cache.get(consequent)
        if itemset_count is None or antecedent_count is None or consequent_count is None:
            return None

        itemset_support = itemset_count / self.total_transactions
        antecedent_support = antecedent_count / self.total_transactions
        consequent_support = consequent_count / self.total_transactions

        confidence = itemset_support / antecedent_support
        lift = confidence / consequent_support
        leverage = itemset_support - antecedent_support * consequent_support
        # Conviction is undefined (infinite) for certain rules
        conviction = np.inf if confidence >= 1.0 else (1 - consequent_support) / (1 - confidence)

        return AssociationRule(antecedent, consequent, itemset_support, confidence, lift, leverage, conviction)

    def _rules_for_itemset(self, itemset):
        rules = []
        consequents = sorted((frozenset([item]) for item in itemset), key=_itemset_sort_key)

        while consequents:
            confident = []
            for consequent in consequents:
                rule = self._create_rule(itemset, consequent)
                if rule is not None and rule.confidence >= self.min_confidence:
                    rules.append(rule)
                    confident.append(consequent)

            size = len(consequents[0]) + 1
            if size >= len(itemset):
                break
            consequents = self._next_level(confident, size)
        return rules

    @staticmethod
    def _next_level(confident, size):
        """Joins confident consequents differing by one item; a candidate survives only if all its subsets were confident."""
        confident_set = set(confident)
        candidates = {}
        for i in range(len(confident)):
            for j in range(i + 1, len(confident)):
                candidate = confident[i] | confident[j]
                if len(candidate) != size or candidate in candidates:
                    continue
                if all(candidate - {item} in confident_set for item in candidate):
                    candidates[candidate] = None
        return sorted(candidates, key=_itemset_sort_key)

    def generate_rules(self):
        start_time = pd.Timestamp.now()
        rules = []
        for itemset in self._support_cache:
            if len(itemset) > 1:
                rules.extend(self._rules_for_itemset(itemset))

        duration = (pd.Timestamp.now() - start_time).total_seconds()
        logger.info(f"Generated {len(rules)} rules with min_confidence: {self.min_confidence}. Time: {duration:.2f}s")
        return rules


def generate_rules(frequent_itemsets, min_confidence, total_transactions):
    return RuleGenerator(min_confidence, frequent_itemsets, total_transactions).generate_rules()
