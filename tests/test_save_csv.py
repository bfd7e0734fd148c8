import io
import json

import numpy as np
import pandas as pd
import pytest

from Association_Rule.Rule_Generator import AssociationRule
from Dataset_Choose_Rule.save_csv import (
    export_frequent_itemsets_to_csv,
    export_frequent_itemsets_to_json,
    export_frequent_itemsets_to_text,
    export_rules_to_csv,
    export_rules_to_json,
    export_rules_to_text,
    frequent_itemsets_to_records,
    rules_to_records,
    save_results,
)

ITEMSETS = {
    frozenset(['milk']): 4,
    frozenset(['diaper', 'beer']): 3,
}

RULES = [
    AssociationRule(['beer'], ['diaper'], 0.6, 1.0, 1.25, 0.12, np.inf),
    AssociationRule(['bread'], ['milk'], 0.6, 0.75, 0.9375, -0.04, 0.8),
]


def test_itemset_records_sort_items():
    assert frequent_itemsets_to_records(ITEMSETS) == [
        {'itemset': ['milk'], 'support': 4},
        {'itemset': ['beer', 'diaper'], 'support': 3},
    ]


def test_itemsets_json():
    assert json.loads(export_frequent_itemsets_to_json(ITEMSETS))[1] == {'itemset': ['beer', 'diaper'], 'support': 3}


def test_itemsets_csv():
    assert export_frequent_itemsets_to_csv(ITEMSETS) == 'Itemset,Support\nmilk,4\nbeer;diaper,3\n'
    assert export_frequent_itemsets_to_csv(ITEMSETS, delimiter='|').splitlines()[2] == 'beer|diaper,3'


def test_itemsets_text_sorted_by_support():
    lines = export_frequent_itemsets_to_text({frozenset(['a']): 1, frozenset(['b']): 5}).splitlines()
    assert lines[0] == 'Frequent Itemsets:'
    assert lines[2] == '{b} => Support: 5'
    assert lines[3] == '{a} => Support: 1'


def test_rule_records_write_infinite_conviction_as_null():
    records = rules_to_records(RULES)
    assert records[0]['conviction'] is None
    assert records[1]['conviction'] == pytest.approx(0.8)
    assert json.loads(export_rules_to_json(RULES))[0]['antecedent'] == ['beer']


def test_rules_csv():
    lines = export_rules_to_csv(RULES).splitlines()
    assert lines[0] == 'Antecedent,Consequent,Support,Confidence,Lift,Leverage,Conviction'
    assert lines[1].startswith('beer,diaper,0.6,1.0,1.25,0.12,')
    assert lines[1].endswith(',INF')
    assert lines[2].endswith(',0.8')


def test_rules_text_sort_orders():
    by_confidence = export_rules_to_text(RULES).splitlines()
    assert by_confidence[2].startswith('1. {beer} => {diaper}')
    by_lift = export_rules_to_text(RULES, sort_by='lift').splitlines()
    assert by_lift[2].startswith('1. {beer} => {diaper}')
    by_support = export_rules_to_text(list(reversed(RULES)), sort_by='support').splitlines()
    assert by_support[2].startswith('1. {bread} => {milk}')


def test_save_results_json(tmp_path):
    path = tmp_path / 'out' / 'results.json'
    save_results(str(path), 'json', ITEMSETS, RULES)
    document = json.loads(path.read_text(encoding='utf-8'))
    assert set(document) == {'frequentItemsets', 'associationRules'}
    assert len(document['frequentItemsets']) == 2
    assert document['associationRules'][0]['conviction'] is None


def test_save_results_csv(tmp_path):
    path = tmp_path / 'results.csv'
    save_results(str(path), 'CSV', ITEMSETS, RULES)
    content = path.read_text(encoding='utf-8')
    assert content.startswith('# Frequent Itemsets\nItemset,Support\n')
    assert '\n# Association Rules\nAntecedent,Consequent' in content
    rules_table = pd.read_csv(io.StringIO(content.split('# Association Rules\n', 1)[1]), dtype=str)
    assert list(rules_table['Conviction']) == ['INF', '0.8']


def test_save_results_rejects_unknown_format(tmp_path):
    with pytest.raises(ValueError):
        save_results(str(tmp_path / 'results.xml'), 'xml', ITEMSETS, RULES)
