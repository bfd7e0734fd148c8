import json

import pytest

import Main_FP_Growth
from Main_FP_Growth import build_parser, main

MARKET_BASKETS = (
    "bread,milk\n"
    "bread,diaper,beer,eggs\n"
    "milk,diaper,beer,cola\n"
    "bread,milk,diaper,beer\n"
    "bread,milk,diaper,cola\n"
)


@pytest.fixture(autouse=True)
def keep_test_logging(monkeypatch):
    # The driver reconfigures the root logger; leave that to the test runner
    monkeypatch.setattr(Main_FP_Growth, 'configure_logging', lambda level: None)


@pytest.fixture
def basket_file(tmp_path):
    path = tmp_path / 'baskets.csv'
    path.write_text(MARKET_BASKETS, encoding='utf-8')
    return path


def test_parser_defaults():
    args = build_parser().parse_args(['--input', 'data.csv'])
    assert args.min_support == 0.05
    assert args.min_confidence == 0.7
    assert args.parallelism == 1
    assert args.log_level == 'info'
    assert args.input_format == 'basket'
    assert args.output_format == 'json'
    assert args.output_file is None


def test_input_is_required():
    with pytest.raises(SystemExit):
        build_parser().parse_args([])


def test_mines_and_prints_rules(basket_file, capsys):
    assert main(['--input', str(basket_file), '--min_support', '3', '--min_confidence', '0.7']) == 0
    out = capsys.readouterr().out
    assert 'Found 8 frequent itemsets in 5 transactions' in out
    assert '{bread, milk} - Support: 3 (60.0%)' in out
    assert 'Generated 8 association rules' in out
    assert '{beer} => {diaper} [sup: 0.600, conf: 1.000, lift: 1.25, lev: 0.120, conv: ∞]' in out


def test_writes_json_output(basket_file, tmp_path):
    output = tmp_path / 'results' / 'out.json'
    exit_code = main([
        '--input', str(basket_file), '--min_support', '0.55',
        '--output_file', str(output), '--output_format', 'json',
    ])
    assert exit_code == 0
    document = json.loads(output.read_text(encoding='utf-8'))
    assert len(document['frequentItemsets']) == 8
    assert len(document['associationRules']) == 8


def test_writes_csv_output_in_parallel(basket_file, tmp_path):
    output = tmp_path / 'out.csv'
    exit_code = main([
        '--input', str(basket_file), '--min_support', '3', '--parallelism', '2',
        '--output_file', str(output), '--output_format', 'csv',
    ])
    assert exit_code == 0
    assert 'beer;diaper,3' in output.read_text(encoding='utf-8')


def test_tabular_input(tmp_path, capsys):
    path = tmp_path / 'flows.csv'
    path.write_text('proto,flag\ntcp,SYN\ntcp,SYN\nudp,ACK\n', encoding='utf-8')
    assert main(['--input', str(path), '--input_format', 'tabular', '--min_support', '2']) == 0
    assert '{flag=SYN, proto=tcp} - Support: 2' in capsys.readouterr().out


def test_empty_input(tmp_path, capsys):
    path = tmp_path / 'empty.csv'
    path.write_text('\n\n', encoding='utf-8')
    assert main(['--input', str(path)]) == 0
    assert 'No transactions found' in capsys.readouterr().out


def test_missing_input_file(tmp_path):
    assert main(['--input', str(tmp_path / 'missing.csv')]) == 1


def test_invalid_min_support(basket_file):
    assert main(['--input', str(basket_file), '--min_support', '0']) == 1


def test_invalid_parallelism(basket_file):
    assert main(['--input', str(basket_file), '--parallelism', '0']) == 1
