# for save frequent itemsets and association rules (json / csv / text)

import json
import logging
import os

import numpy as np
import pandas as pd

logger = logging.getLogger(__name__)

ITEMSET_COLUMNS = ['Itemset', 'Support']
RULE_COLUMNS = ['Antecedent', 'Consequent', 'Support', 'Confidence', 'Lift', 'Leverage', 'Conviction']
OUTPUT_FORMATS = ('json', 'csv')


# Functions for creating folders if they don't exist
def ensure_directory_exists(directory):
    if directory and not os.path.exists(directory):
        os.makedirs(directory)


def _item_strings(items):
    return sorted(str(item) for item in items)


def _is_infinite(value):
    return value is not None and np.isinf(value)


def frequent_itemsets_to_records(itemsets):
    return [{'itemset': _item_strings(itemset), 'support': int(support)} for itemset, support in itemsets.items()]


def export_frequent_itemsets_to_json(itemsets):
    return json.dumps(frequent_itemsets_to_records(itemsets))


def _itemsets_dataframe(itemsets, delimiter):
    rows = [(delimiter.join(_item_strings(itemset)), int(support)) for itemset, support in itemsets.items()]
    return pd.DataFrame(rows, columns=ITEMSET_COLUMNS)


def export_frequent_itemsets_to_csv(itemsets, delimiter=';'):
    """Header 'Itemset,Support'; items of one itemset are joined by `delimiter`."""
    return _itemsets_dataframe(itemsets, delimiter).to_csv(index=False, lineterminator='\n')


def export_frequent_itemsets_to_text(itemsets, sort_by_support=True):
    lines = ['Frequent Itemsets:', '=' * 50]
    entries = list(itemsets.items())
    if sort_by_support:
        entries.sort(key=lambda entry: -entry[1])
    for itemset, support in entries:
        lines.append(f"{{{', '.join(_item_strings(itemset))}}} => Support: {support}")
    return '\n'.join(lines) + '\n'


def rules_to_records(rules):
    # Infinite conviction has no JSON number representation
    records = []
    for rule in rules:
        records.append({
            'antecedent': _item_strings(rule.antecedent),
            'consequent': _item_strings(rule.consequent),
            'support': rule.support,
            'confidence': rule.confidence,
            'lift': rule.lift,
            'leverage': rule.leverage,
            'conviction': None if _is_infinite(rule.conviction) else rule.conviction,
        })
    return records


def export_rules_to_json(rules):
    return json.dumps(rules_to_records(rules))


def _rules_dataframe(rules, delimiter):
    rows = []
    for rule in rules:
        rows.append((
            delimiter.join(_item_strings(rule.antecedent)),
            delimiter.join(_item_strings(rule.consequent)),
            rule.support,
            rule.confidence,
            rule.lift,
            rule.leverage,
            'INF' if _is_infinite(rule.conviction) else rule.conviction,
        ))
    return pd.DataFrame(rows, columns=RULE_COLUMNS)


def export_rules_to_csv(rules, delimiter=';'):
    return _rules_dataframe(rules, delimiter).to_csv(index=False, lineterminator='\n')


def export_rules_to_text(rules, sort_by='confidence'):
    sort_keys = {
        'confidence': lambda rule: -rule.confidence,
        'lift': lambda rule: -rule.lift,
        'support': lambda rule: -rule.support,
    }
    # Unknown keys fall back to confidence
    sorted_rules = sorted(rules, key=sort_keys.get(str(sort_by).lower(), sort_keys['confidence']))

    lines = ['Association Rules:', '=' * 80]
    for index, rule in enumerate(sorted_rules, start=1):
        lines.append(f"{index}. {rule.format_with_metrics()}")
    return '\n'.join(lines) + '\n'


def save_results(file_path, output_format, itemsets, rules):
    """
    Writes itemsets and rules into one file.

    json: {"frequentItemsets": [...], "associationRules": [...]}
    csv:  the itemset table, a blank line, then the rule table, each under a section header.

    Raises:
        ValueError: if output_format is not json or csv.
    """
    output_format = str(output_format).lower()
    if output_format not in OUTPUT_FORMATS:
        raise ValueError(f"Unsupported output format: {output_format}. Expected one of {', '.join(OUTPUT_FORMATS)}")

    ensure_directory_exists(os.path.dirname(file_path))  # Verify and create the folder

    if output_format == 'json':
        document = {
            'frequentItemsets': frequent_itemsets_to_records(itemsets),
            'associationRules': rules_to_records(rules),
        }
        with open(file_path, 'w', encoding='utf-8') as f:
            json.dump(document, f, indent=2)
    else:
        with open(file_path, 'w', encoding='utf-8', newline='') as f:
            f.write('# Frequent Itemsets\n')
            f.write(export_frequent_itemsets_to_csv(itemsets))
            f.write('\n# Association Rules\n')
            f.write(export_rules_to_csv(rules))

    logger.info(f"Results saved to: {os.path.abspath(file_path)}")
    return file_path
