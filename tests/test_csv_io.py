import io
import pytest
from decimal import Decimal
from unittest.mock import patch

from cli import main
from csv_io import format_amount, read_transactions, write_accounts
from models import AccountStatus, Deposit, Dispute, TransactionRecord, Withdrawal
from pydantic import ValidationError


class TestTransactionRecord:
    """Test decoding of raw CSV rows."""

    def test_deposit_record(self):
        record = TransactionRecord(type="deposit", client="1", tx="1001", amount="42.5")
        transaction = record.to_transaction()

        assert isinstance(transaction, Deposit)
        assert transaction.client == 1
        assert transaction.tx == 1001
        assert transaction.amount == Decimal("42.5")

    def test_record_values_are_trimmed(self):
        record = TransactionRecord(type=" withdrawal ", client=" 2", tx="1002 ", amount=" 10.0 ")
        transaction = record.to_transaction()

        assert isinstance(transaction, Withdrawal)
        assert transaction.amount == Decimal("10.0")

    def test_dispute_without_amount(self):
        record = TransactionRecord(type="dispute", client="3", tx="1003", amount="")
        transaction = record.to_transaction()

        assert isinstance(transaction, Dispute)
        assert record.amount is None

    def test_deposit_requires_amount(self):
        record = TransactionRecord(type="deposit", client="1", tx="1")

        with pytest.raises(ValueError):
            record.to_transaction()

    def test_unknown_type(self):
        with pytest.raises(ValidationError):
            TransactionRecord(type="refund", client="1", tx="1")

    def test_client_id_out_of_range(self):
        with pytest.raises(ValidationError):
            TransactionRecord(type="deposit", client="65536", tx="1", amount="1")

    def test_amount_bounds(self):
        with pytest.raises(ValidationError):
            TransactionRecord(type="deposit", client="1", tx="1", amount="10000000000000000000000000")

        with pytest.raises(ValidationError):
            TransactionRecord(type="deposit", client="1", tx="1", amount="1.00001")

        record = TransactionRecord(type="deposit", client="1", tx="1", amount="999999999999999.9999")
        assert record.amount == Decimal("999999999999999.9999")


class TestReadTransactions:
    """Test reading transaction CSV streams."""

    def test_reads_all_kinds(self):
        data = io.StringIO(
            "type, client, tx, amount\n"
            "deposit, 1, 1, 1.0\n"
            "withdrawal, 1, 2, 0.5\n"
            "dispute, 1, 1,\n"
            "resolve, 1, 1\n"
            "chargeback, 1, 2,\n"
        )
        transactions = list(read_transactions(data))

        assert [t.type for t in transactions] == [
            "deposit", "withdrawal", "dispute", "resolve", "chargeback"
        ]
        assert transactions[1].amount == Decimal("0.5")

    def test_malformed_rows_are_skipped(self):
        data = io.StringIO(
            "type,client,tx,amount\n"
            "deposit,1,1,abc\n"
            "teleport,1,2,1.0\n"
            "withdrawal,1,3,\n"
            "\n"
            "deposit,2,4,2.5\n"
        )
        transactions = list(read_transactions(data))

        assert len(transactions) == 1
        assert transactions[0].client == 2

    def test_empty_stream(self):
        assert list(read_transactions(io.StringIO(""))) == []

    @patch("csv_io.logger")
    def test_skip_warning_reports_line_number(self, mock_logger):
        """Quoted fields spanning lines keep the reported line numbers right."""
        data = io.StringIO(
            "type,client,tx,amount\n"
            "\"dep\nosit\",1,1,1.0\n"
            "teleport,1,2,1.0\n"
        )

        assert list(read_transactions(data)) == []

        lines = [c.kwargs["line"] for c in mock_logger.warning.call_args_list]
        assert lines == [3, 4]


class TestWriteAccounts:
    """Test the account report."""

    def test_report_format(self):
        out = io.StringIO()
        write_accounts([
            AccountStatus(client=1, available=Decimal("1.5"), held=Decimal("0"), total=Decimal("1.5"), locked=False),
            AccountStatus(client=2, available=Decimal("2"), held=Decimal("-0.25"), total=Decimal("1.75"), locked=True),
        ], out)

        assert out.getvalue() == (
            "client,available,held,total,locked\n"
            "1,1.5000,0.0000,1.5000,false\n"
            "2,2.0000,-0.2500,1.7500,true\n"
        )

    def test_format_amount_precision(self):
        assert format_amount(Decimal("3"), 2) == "3.00"
        assert format_amount(Decimal("0.12345"), 4) == "0.1234"

    def test_format_large_amount(self):
        """Balances wider than the default decimal context still format."""
        amount = Decimal("1" + "0" * 30)

        assert format_amount(amount, 4) == "1" + "0" * 30 + ".0000"


class TestCommandLine:
    """Test the batch command end to end."""

    def test_processes_file(self, tmp_path, capsys):
        path = tmp_path / "transactions.csv"
        path.write_text(
            "type,client,tx,amount\n"
            "deposit,2,1,200.0\n"
            "deposit,1,2,100.0\n"
            "withdrawal,2,3,50.0\n"
            "dispute,2,3,\n"
            "chargeback,2,3,\n"
            "withdrawal,1,4,150.0\n"
            "dispute,1,99,\n"
        )

        assert main([str(path), "--sort"]) == 0

        out = capsys.readouterr().out
        assert out == (
            "client,available,held,total,locked\n"
            "1,100.0000,0.0000,100.0000,false\n"
            "2,200.0000,0.0000,200.0000,true\n"
        )

    def test_missing_file(self, tmp_path, capsys):
        assert main([str(tmp_path / "missing.csv")]) == 1
        assert capsys.readouterr().out == ""

    def test_oversized_amount_is_skipped(self, tmp_path, capsys):
        path = tmp_path / "transactions.csv"
        path.write_text(
            "type,client,tx,amount\n"
            "deposit,1,1,10000000000000000000000000\n"
            "deposit,1,2,3.5\n"
        )

        assert main([str(path), "--sort"]) == 0

        assert capsys.readouterr().out == (
            "client,available,held,total,locked\n"
            "1,3.5000,0.0000,3.5000,false\n"
        )

    def test_undecodable_row_is_skipped(self, tmp_path, capsys):
        path = tmp_path / "transactions.csv"
        path.write_bytes(
            b"type,client,tx,amount\n"
            b"deposit,1,1,5.0\n"
            b"deposit,2,2,\xff\xfe1.0\n"
            b"deposit,3,3,2.0\n"
        )

        assert main([str(path), "--sort"]) == 0

        assert capsys.readouterr().out == (
            "client,available,held,total,locked\n"
            "1,5.0000,0.0000,5.0000,false\n"
            "3,2.0000,0.0000,2.0000,false\n"
        )

    def test_version(self, capsys):
        with pytest.raises(SystemExit) as exc_info:
            main(["--version"])

        assert exc_info.value.code == 0
        assert capsys.readouterr().out.strip() == "transactions-processor 1.0.0"
