# A program that mines frequent itemsets and association rules from a transaction file with FP-Growth.

import argparse
import logging
import sys

import pandas as pd

from Association_Rule.FP_Growth import FPGrowth
from Association_Rule.Rule_Generator import AssociationRule, RuleGenerator
from Dataset_Choose_Rule.save_csv import OUTPUT_FORMATS, save_results
from Dataset_Choose_Rule.transaction_source import CsvTransactionSource, TabularCsvTransactionSource
from definition.mining_errors import MiningError
from utils.log_config import LOG_LEVELS, configure_logging, parse_log_level

# Configured in main() once the --log_level argument is known.
logger = logging.getLogger(__name__)


def build_parser():
    # Create an instance that can receive argument values
    parser = argparse.ArgumentParser(description='FP-Growth frequent itemset and association rule mining')

    parser.add_argument('--input', '-i', type=str, required=True)   # transaction file
    parser.add_argument('--min_support', '-s', type=float, default=0.05)   # >= 1 absolute count, < 1 fraction
    parser.add_argument('--min_confidence', '-c', type=float, default=0.7)
    parser.add_argument('--parallelism', '-p', type=int, default=1)   # worker processes, 1 = sequential
    parser.add_argument('--log_level', '-l', type=str, default='info', help=f"one of {', '.join(LOG_LEVELS)}")
    parser.add_argument('--input_format', type=str, default='basket', choices=['basket', 'tabular'])
    parser.add_argument('--delimiter', '-d', type=str, default=',')
    parser.add_argument('--output_file', '-o', type=str, default=None)
    parser.add_argument('--output_format', '-f', type=str, default='json', choices=list(OUTPUT_FORMATS))
    return parser


def open_source(args):
    if args.input_format == 'tabular':
        return TabularCsvTransactionSource(args.input, sep=args.delimiter)
    return CsvTransactionSource(args.input, delimiter=args.delimiter)


def print_itemsets(itemsets, transaction_count):
    print(f"\nFound {len(itemsets)} frequent itemsets in {transaction_count} transactions:")
    for itemset, support in sorted(itemsets.items(), key=lambda entry: (-entry[1], sorted(map(str, entry[0])))):
        percentage = support / transaction_count * 100
        print(f"  {{{', '.join(sorted(map(str, itemset)))}}} - Support: {support} ({percentage:.1f}%)")


def print_rules(rules):
    print(f"\nGenerated {len(rules)} association rules:")
    for rule in sorted(rules, key=AssociationRule.by_confidence):
        print(f"  {rule.format_with_metrics()}")


def main(argv=None):
    args = build_parser().parse_args(argv)
    configure_logging(parse_log_level(args.log_level))

    total_start_time = pd.Timestamp.now()
    logger.info(f"Global start time: {total_start_time.strftime('%Y-%m-%d %H:%M:%S')}")

    try:
        source = open_source(args)
        fp_growth = FPGrowth(min_support=args.min_support, parallelism=args.parallelism)
        frequent_itemsets, transaction_count = fp_growth.mine(source)

        if transaction_count == 0:
            print("No transactions found in the input file.")
            return 0

        print_itemsets(frequent_itemsets, transaction_count)

        rules = RuleGenerator(args.min_confidence, frequent_itemsets, transaction_count).generate_rules()
        print_rules(rules)

        if args.output_file:
            save_results(args.output_file, args.output_format, frequent_itemsets, rules)
            print(f"\nResults saved to {args.output_file}")
    except (MiningError, FileNotFoundError, ValueError) as e:
        logger.error(f"{type(e).__name__}: {e}")
        return 1

    total_duration = (pd.Timestamp.now() - total_start_time).total_seconds()
    logger.info(f"Total execution time: {total_duration:.2f}s")
    return 0


if __name__ == '__main__':
    sys.exit(main())
