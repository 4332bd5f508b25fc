"""Tests for the command line interface."""

import pytest

from db import AssetCategory
from main import build_parser, main
from services.asset_service import get_position, list_positions


class TestCli:
    def test_no_command_prints_help(self, capsys):
        assert main([]) == 0
        assert "Net Worth Dashboard" in capsys.readouterr().out

    def test_account_workflow(self, db, capsys):
        assert main(["add-account", "Checking", "--bank", "Deutsche Bank", "--balance", "1000"]) == 0
        account = list_positions(AssetCategory.ACCOUNT)[0]

        assert main(["withdraw", "account", str(account.id), "300"]) == 0
        assert main(["deposit", "account", str(account.id), "50", "--description", "refund"]) == 0
        assert get_position(AssetCategory.ACCOUNT, account.id).balance == 750.0

        main(["portfolio"])
        out = capsys.readouterr().out
        assert "NET WORTH" in out
        assert "750.00" in out

    def test_buy_sell_and_transactions(self, db, capsys):
        main(["add-investment", "AAPL", "--shares", "0", "--price", "0"])
        inv = list_positions(AssetCategory.INVESTMENT)[0]

        assert main(["buy", "investment", str(inv.id), "--quantity", "5", "--price", "100"]) == 0
        assert main(["buy", "investment", str(inv.id), "--quantity", "5", "--price", "200"]) == 0
        assert main(["sell", "investment", str(inv.id), "--quantity", "20", "--price", "200"]) == 1

        stored = get_position(AssetCategory.INVESTMENT, inv.id)
        assert stored.shares == 10.0
        assert stored.purchase_price == pytest.approx(150.0)

        main(["transactions", "--limit", "5"])
        assert "BUY" in capsys.readouterr().out

    def test_edit_requires_fields(self, db):
        main(["add-cash", "Wallet", "--amount", "5"])
        cash = list_positions(AssetCategory.CASH)[0]
        assert main(["edit", "cash", str(cash.id)]) == 1
        assert main(["edit", "cash", str(cash.id), "--amount", "8"]) == 0
        assert get_position(AssetCategory.CASH, cash.id).amount == 8.0

    def test_clear_needs_confirmation(self, db):
        main(["add-cash", "Wallet", "--amount", "5"])
        assert main(["clear"]) == 1
        assert len(list_positions(AssetCategory.CASH)) == 1
        main(["clear", "--yes"])
        assert list_positions(AssetCategory.CASH) == []

    def test_deposit_rejects_priced_category(self):
        with pytest.raises(SystemExit):
            build_parser().parse_args(["deposit", "investment", "1", "10"])
