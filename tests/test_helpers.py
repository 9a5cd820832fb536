import pytest

from capwatchbot.helpers import humanize, is_solana_address, parse_mc_input, short_ca, signed
from capwatchbot.tables import watches_table
from tests.conftest import change_watch, cross_watch


@pytest.mark.parametrize("text,value", [
    ("2500000", 2_500_000), ("2,500,000", 2_500_000), ("250k", 250_000),
    ("2.5M", 2_500_000), ("1b", 1_000_000_000), ("1t", 1_000_000_000_000),
    ("$300k", 300_000), ("-5", -5),
])
def test_parse_mc_input(text, value):
    assert parse_mc_input(text) == value


@pytest.mark.parametrize("text", ["", "abc", "k", "1.2.3m"])
def test_parse_mc_input_rejects(text):
    with pytest.raises(ValueError):
        parse_mc_input(text)


def test_humanize():
    assert humanize(None) == "—"
    assert humanize(999) == "999.00"
    assert humanize(1_250_000) == "1.25M"
    assert signed(-2_000) == "-2.00K"
    assert signed(0) == "+0.00"


def test_addresses():
    assert is_solana_address("DezXAZ8z7PnrnRJjz3wXBoRgixCa6xjnB7YaB1pPB263")
    assert not is_solana_address("0xabc")
    assert short_ca("DezXAZ8z7PnrnRJjz3wXBoRgixCa6xjnB7YaB1pPB263") == "DezX…B263"


def test_watches_table():
    table = watches_table([change_watch(delta=50_000, address="A"), cross_watch(target=2e6, address="B")],
                          {"A": 1_500_000.0})
    lines = table.strip("`\n").splitlines()
    assert len(lines) == 4
    assert "Δ $50.00K" in lines[2] and "$1.50M" in lines[2]
    assert "⇅ $2.00M" in lines[3] and lines[3].rstrip().endswith("—")
