# Rewindable transaction sources for the two-pass FP-Growth driver
# Every open() call must start a fresh, independent iteration over the same transactions.
# A source that yields different data on the second pass is a caller error and is not detected.

import abc
import csv
import io
import os
import logging

import pandas as pd

logger = logging.getLogger(__name__)


class TransactionSource(abc.ABC):
    @abc.abstractmethod
    def open(self):
        """Returns a new iterator of transactions (lists of items)."""

    def __iter__(self):
        return iter(self.open())


class ListTransactionSource(TransactionSource):
    def __init__(self, transactions):
        self.transactions = transactions

    def open(self):
        return (list(transaction) for transaction in self.transactions)

    def __len__(self):
        return len(self.transactions)


class CallableTransactionSource(TransactionSource):
    """Wraps a zero-argument factory that returns a fresh iterable on every call."""

    def __init__(self, factory):
        if not callable(factory):
            raise TypeError(f"Transaction factory must be callable, got {type(factory).__name__}")
        self.factory = factory

    def open(self):
        return (list(transaction) for transaction in self.factory())


def _csv_row_to_transaction(row):
    # A blank line comes back as [] (or ['']) and is kept as an empty transaction
    if len(row) == 1 and row[0] == '':
        return []
    return list(row)


class CsvTransactionSource(TransactionSource):
    """
    Basket file: one transaction per line, one item per field.
    Fields are read as strings, quoting follows the csv module dialect settings.
    """

    def __init__(self, path, delimiter=',', quotechar='"', encoding='utf-8'):
        if not os.path.exists(path):
            raise FileNotFoundError(f"Transaction file not found: {path}")
        self.path = path
        self.delimiter = delimiter
        self.quotechar = quotechar
        self.encoding = encoding

    def open(self):
        logger.debug(f"Opening basket file {self.path}")
        with open(self.path, 'r', newline='', encoding=self.encoding) as f:
            reader = csv.reader(f, delimiter=self.delimiter, quotechar=self.quotechar)
            for row in reader:
                yield _csv_row_to_transaction(row)


def transactions_from_csv(csv_content, delimiter=',', quotechar='"'):
    """
    Parses CSV text into a list of transactions.

    Example:
        "a,b,c\\na,d" -> [['a', 'b', 'c'], ['a', 'd']]
    """
    reader = csv.reader(io.StringIO(csv_content), delimiter=delimiter, quotechar=quotechar)
    return [_csv_row_to_transaction(row) for row in reader]


def _dataframe_rows_to_transactions(df):
    columns = list(df.columns)
    for row in df.itertuples(index=False, name=None):
        yield [f"{col}={val}" for col, val in zip(columns, row) if pd.notna(val)]


class DataFrameTransactionSource(TransactionSource):
    """Tabular data already in memory: each non-missing cell becomes the item 'column=value'."""

    def __init__(self, df):
        self.df = df

    def open(self):
        return _dataframe_rows_to_transactions(self.df)

    def __len__(self):
        return len(self.df)


class TabularCsvTransactionSource(TransactionSource):
    """
    Tabular CSV with a header row, streamed chunk by chunk with pandas.
    Values are kept as strings so that '1' and '1.0' stay distinct items.
    """

    def __init__(self, path, chunksize=100000, sep=',', encoding='utf-8'):
        if not os.path.exists(path):
            raise FileNotFoundError(f"Transaction file not found: {path}")
        self.path = path
        self.chunksize = chunksize
        self.sep = sep
        self.encoding = encoding

    def open(self):
        logger.debug(f"Reading {self.path} in chunks of {self.chunksize} rows")
        reader = pd.read_csv(self.path, sep=self.sep, dtype=str, chunksize=self.chunksize,
                             encoding=self.encoding, skip_blank_lines=True)
        with reader:
            for chunk in reader:
                yield from _dataframe_rows_to_transactions(chunk)


def as_transaction_source(source):
    """
    Normalises the accepted source forms to a TransactionSource:
    a TransactionSource, a pandas DataFrame, an in-memory list/tuple of transactions,
    or a zero-argument factory returning a fresh iterable per call.
    """
    if isinstance(source, TransactionSource):
        return source
    if isinstance(source, pd.DataFrame):
        return DataFrameTransactionSource(source)
    if isinstance(source, (list, tuple)):
        return ListTransactionSource(source)
    if callable(source):
        return CallableTransactionSource(source)
    raise TypeError(
        f"Unsupported transaction source {type(source).__name__}; expected a TransactionSource, "
        f"a DataFrame, a list of transactions or a zero-argument factory"
    )
