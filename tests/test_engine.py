import sys
import os
from decimal import Decimal

import pytest

sys.path.insert(0, os.path.join(os.path.dirname(__file__), "..", "src"))

from engine import PaymentsEngine

DATA_DIR = os.path.join(os.path.dirname(__file__), "data")


class TestPaymentsEngine:
    def test_basic_transactions(self, tmp_path):
        csv_file = tmp_path / "test.csv"
        csv_file.write_text('\n'.join([
            "type, client, tx, amount",
            "deposit, 1, 1, 1.0",
            "deposit, 2, 2, 2.0",
            "deposit, 1, 3, 2.0",
            "withdrawal, 1, 4, 1.5",
            "withdrawal, 2, 5, 3.0",
        ]))

        engine = PaymentsEngine()
        accounts = engine.process_file(str(csv_file))

        assert 1 in accounts
        assert 2 in accounts

        assert accounts.get(1).available == Decimal("1.5")
        assert accounts.get(1).held == Decimal("0")
        assert accounts.get(1).total == Decimal("1.5")

        assert accounts.get(2).available == Decimal("2.0")
        assert accounts.get(2).held == Decimal("0")
        assert accounts.get(2).total == Decimal("2.0")

        assert engine.stats.applied == 4
        assert engine.stats.ignored == 1

    def test_simple_fixture(self):
        engine = PaymentsEngine()
        accounts = engine.process_file(os.path.join(DATA_DIR, "simple_test.csv"))

        assert len(accounts) == 2
        assert accounts.get(1).deposits.get(1).amount == Decimal("1.0")
        assert accounts.get(1).deposits.get(3).amount == Decimal("2.0")
        assert len(accounts.get(1).deposits) == 2
        assert len(accounts.get(2).deposits) == 1
        assert accounts.get(1).total == Decimal("1.5")
        assert accounts.get(2).total == Decimal("2.0")

    def test_all_types_fixture(self):
        engine = PaymentsEngine()
        accounts = engine.process_file(os.path.join(DATA_DIR, "all_types.csv"))

        # the chargeback comes after the resolve, so nothing is disputed any more
        account = accounts.get(1)
        assert account.available == Decimal("6")
        assert account.held == Decimal("0")
        assert account.total == Decimal("6")
        assert account.locked is False
        assert engine.stats.applied == 4
        assert engine.stats.ignored == 1
        assert engine.stats.skipped == 0

    def test_dispute_resolve(self, tmp_path):
        csv_file = tmp_path / "test.csv"
        csv_file.write_text('\n'.join([
            "type, client, tx, amount",
            "deposit, 1, 1, 100.0",
            "dispute, 1, 1,",
            "resolve, 1, 1,",
        ]))

        accounts = PaymentsEngine().process_file(str(csv_file))

        assert accounts.get(1).available == Decimal("100")
        assert accounts.get(1).held == Decimal("0")
        assert accounts.get(1).locked is False

    def test_chargeback(self, tmp_path):
        csv_file = tmp_path / "test.csv"
        csv_file.write_text('\n'.join([
            "type, client, tx, amount",
            "deposit, 1, 1, 100.0",
            "dispute, 1, 1,",
            "chargeback, 1, 1,",
        ]))

        accounts = PaymentsEngine().process_file(str(csv_file))

        assert accounts.get(1).available == Decimal("0")
        assert accounts.get(1).held == Decimal("0")
        assert accounts.get(1).total == Decimal("0")
        assert accounts.get(1).locked is True

    def test_dispute_before_deposit_ignored(self, tmp_path):
        """Input order is application order; nothing is retried."""
        csv_file = tmp_path / "test.csv"
        csv_file.write_text('\n'.join([
            "type, client, tx, amount",
            "dispute, 1, 1,",
            "deposit, 1, 1, 100.0",
        ]))

        accounts = PaymentsEngine().process_file(str(csv_file))

        assert accounts.get(1).available == Decimal("100")
        assert accounts.get(1).held == Decimal("0")
        assert accounts.get(1).total == Decimal("100")

    def test_insufficient_funds(self, tmp_path):
        csv_file = tmp_path / "test.csv"
        csv_file.write_text('\n'.join([
            "type, client, tx, amount",
            "deposit, 1, 1, 40.0",
            "withdrawal, 1, 2, 50.0",
        ]))

        accounts = PaymentsEngine().process_file(str(csv_file))

        assert accounts.get(1).available == Decimal("40")
        assert accounts.get(1).total == Decimal("40")

    def test_full_precision_kept_internally(self, tmp_path):
        csv_file = tmp_path / "test.csv"
        csv_file.write_text('\n'.join([
            "type, client, tx, amount",
            "deposit, 1, 1, 100.12345",
            "withdrawal, 1, 2, 25.6789",
        ]))

        accounts = PaymentsEngine().process_file(str(csv_file))

        assert accounts.get(1).available == Decimal("74.44455")
        accounts.get(1).normalize()
        assert accounts.get(1).available == Decimal("74.4446")
        assert accounts.get(1).total == Decimal("74.4446")
        assert accounts.get(1).held == Decimal("0")

    def test_dispute_withdrawal_ignored(self, tmp_path):
        """Disputing a withdrawal should be ignored."""
        csv_file = tmp_path / "test.csv"
        csv_file.write_text('\n'.join([
            "type, client, tx, amount",
            "deposit, 1, 1, 100.0",
            "withdrawal, 1, 2, 50.0",
            "dispute, 1, 2,",
        ]))

        accounts = PaymentsEngine().process_file(str(csv_file))

        assert accounts.get(1).available == Decimal("50")
        assert accounts.get(1).held == Decimal("0")

    def test_frozen_account_rejects_operations(self, tmp_path):
        csv_file = tmp_path / "test.csv"
        csv_file.write_text('\n'.join([
            "type, client, tx, amount",
            "deposit, 1, 1, 100.0",
            "dispute, 1, 1,",
            "chargeback, 1, 1,",
            "deposit, 1, 2, 50.0",
            "withdrawal, 1, 3, 10.0",
        ]))

        accounts = PaymentsEngine().process_file(str(csv_file))

        assert accounts.get(1).available == Decimal("0")
        assert accounts.get(1).total == Decimal("0")
        assert accounts.get(1).locked is True

    def test_wrong_client_chargeback_ignored(self, tmp_path):
        csv_file = tmp_path / "test.csv"
        csv_file.write_text('\n'.join([
            "type, client, tx, amount",
            "deposit, 1, 1, 100.0",
            "dispute, 1, 1,",
            "chargeback, 2, 1,",
        ]))

        accounts = PaymentsEngine().process_file(str(csv_file))

        assert accounts.get(1).available == Decimal("0")
        assert accounts.get(1).held == Decimal("100")
        assert accounts.get(1).locked is False
        assert 2 not in accounts

    def test_redispute_after_resolve(self, tmp_path):
        csv_file = tmp_path / "test.csv"
        csv_file.write_text('\n'.join([
            "type, client, tx, amount",
            "deposit, 1, 1, 100.0",
            "dispute, 1, 1,",
            "resolve, 1, 1,",
            "dispute, 1, 1,",
            "chargeback, 1, 1,",
        ]))

        accounts = PaymentsEngine().process_file(str(csv_file))

        assert accounts.get(1).available == Decimal("0")
        assert accounts.get(1).held == Decimal("0")
        assert accounts.get(1).total == Decimal("0")
        assert accounts.get(1).locked is True

    def test_malformed_rows_skipped(self, tmp_path):
        csv_file = tmp_path / "test.csv"
        csv_file.write_text('\n'.join([
            "type, client, tx, amount",
            "deposit, 1, 1, 100.0",
            "transfer, 1, 2, 5.0",
            "deposit, 1, 3,",
            "withdrawal, abc, 4, 1.0",
            "deposit, 70000, 5, 1.0",
            "withdrawal, 1, 6, 10.0",
        ]))

        engine = PaymentsEngine()
        accounts = engine.process_file(str(csv_file))

        assert len(accounts) == 1
        assert accounts.get(1).available == Decimal("90")
        assert engine.stats.skipped == 4
        assert engine.stats.applied == 2

    def test_missing_file_raises(self, tmp_path):
        with pytest.raises(FileNotFoundError):
            PaymentsEngine().process_file(str(tmp_path / "missing.csv"))
