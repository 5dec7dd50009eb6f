"""End-to-end tests of the command line."""

import pytest

from ledgerbook.cli.main import cli


@pytest.fixture
def run(cli_runner, temp_db):
    """Invoke the CLI as the admin user against the temporary database."""

    def _run(*args, user="Admin", input=None):
        base = ["--db-path", temp_db.database_path]
        if user:
            base += ["--user", user]
        return cli_runner.invoke(cli, base + list(args), input=input)

    return _run


@pytest.fixture
def ledger(run):
    """Admin user, two accounts and categories created from the command line."""
    assert run("user", "create", "Admin", user=None).exit_code == 0
    for args in (
        ("account", "create", "Caixa"),
        ("account", "create", "Banco"),
        ("category", "create", "Ofertas", "--kind", "income"),
        ("category", "create", "Energia"),
        ("category", "create", "Aluguel"),
    ):
        result = run(*args)
        assert result.exit_code == 0, result.output
    return run


def test_help_does_not_open_database(cli_runner, tmp_path):
    """Test --help works without a database."""
    result = cli_runner.invoke(cli, ["--db-path", str(tmp_path / "x.db"), "--help"])

    assert result.exit_code == 0
    assert "report" in result.output
    assert not (tmp_path / "x.db").exists()


def test_add_expense(ledger):
    """Test adding an executed expense with its document number."""
    result = ledger(
        "add", "--account", "Caixa", "--category", "Energia", "--date", "2024-01-31",
        "--amount", "150,00", "--description", "Conta de luz", "--payment-method", "PIX",
    )

    assert result.exit_code == 0, result.output
    assert "Created 1 transaction" in result.output
    assert "2024-01-31 | R$ 150,00 | Doc 001 | Conta de luz" in result.output
    assert "Balance Caixa: -R$ 150,00" in result.output


def test_add_recurring_scheduled(ledger):
    """Test a recurring scheduled expense keeps the balance."""
    result = ledger(
        "add", "--account", "Caixa", "--category", "Aluguel", "--date", "2024-01-31",
        "--amount", "900", "--description", "Aluguel", "--status", "scheduled", "--recurring", "3",
    )

    assert result.exit_code == 0, result.output
    assert "Created 3 transactions" in result.output
    assert "2024-03-02" in result.output
    assert "Balance" not in result.output


def test_add_income_with_dd_mm_date(ledger):
    """Test income and localized inputs."""
    result = ledger(
        "add", "--account", "Banco", "--category", "Ofertas", "--kind", "income",
        "--date", "07/01/2024", "--amount", "1.234,56", "--description", "Culto",
    )

    assert result.exit_code == 0, result.output
    assert "2024-01-07 | R$ 1.234,56 | Culto" in result.output
    assert "Balance Banco: +R$ 1.234,56" in result.output


@pytest.mark.parametrize("amount", ["-10", "(10,00)", "abc"])
def test_add_rejects_bad_amount(ledger, amount):
    """Test signed or unparseable amounts."""
    result = ledger(
        "add", "--account", "Caixa", "--category", "Energia", "--date", "2024-01-31",
        "--amount", amount, "--description", "x",
    )

    assert result.exit_code == 1
    assert "Error:" in result.output


def test_add_wrong_kind_category(ledger):
    """Test expense categories are looked up by kind."""
    result = ledger(
        "add", "--account", "Caixa", "--category", "Ofertas", "--date", "2024-01-31",
        "--amount", "10", "--description", "x",
    )

    assert result.exit_code == 1
    assert "Category 'Ofertas' not found" in result.output


def test_add_as_viewer(ledger):
    """Test viewers cannot add."""
    ledger("user", "create", "Leitor")
    result = ledger(
        "add", "--account", "Caixa", "--category", "Energia", "--date", "2024-01-31",
        "--amount", "10", "--description", "x", user="Leitor",
    )

    assert result.exit_code == 1
    assert "not allowed to change data" in result.output


def _add_sample_entries(run):
    for args in (
        ("--category", "Ofertas", "--kind", "income", "--amount", "100", "--date", "2024-01-05"),
        ("--category", "Energia", "--amount", "40", "--date", "2024-01-10", "--status", "scheduled"),
        ("--category", "Energia", "--amount", "10", "--date", "2024-01-12", "--payment-method", "PIX"),
    ):
        result = run("add", "--account", "Caixa", "--description", "Entry", *args)
        assert result.exit_code == 0, result.output


def test_transaction_list_and_execute(ledger):
    """Test listing, executing and deleting from the command line."""
    _add_sample_entries(ledger)

    result = ledger("transaction", "list", "--month", "2024-01")
    assert result.exit_code == 0, result.output
    assert "Found 3 transaction(s) between 2024-01-01 and 2024-01-31" in result.output
    assert "Executed: R$ 10,00 | Scheduled: R$ 40,00" in result.output

    result = ledger("transaction", "list", "--start-date", "2024-01-31", "--end-date", "2024-01-11")
    assert "Found 1 transaction(s) between 2024-01-11 and 2024-01-31" in result.output

    result = ledger("transaction", "execute", "2")
    assert result.exit_code == 0
    assert "Marked transaction 2 as executed" in result.output
    assert "Balance Caixa: -R$ 40,00" in result.output

    result = ledger("transaction", "execute", "2")
    assert "was already executed" in result.output

    result = ledger("transaction", "execute", "1")
    assert result.exit_code == 1
    assert "Only expenses" in result.output

    result = ledger("transaction", "delete", "3", "--yes")
    assert "Deleted transaction 3" in result.output
    assert "Balance Caixa: +R$ 10,00" in result.output

    result = ledger("transaction", "list", "--month", "2024-02")
    assert "No transactions found between 2024-02-01 and 2024-02-29." in result.output


def test_transaction_update(ledger):
    """Test updating fields from the command line."""
    _add_sample_entries(ledger)

    result = ledger("transaction", "update", "3", "--amount", "25,00", "--description", "Luz")
    assert result.exit_code == 0, result.output
    assert "Updated transaction 3" in result.output
    assert "Balance Caixa: -R$ 15,00" in result.output

    result = ledger("transaction", "update", "3", "--kind", "income", "--category", "Ofertas")
    assert result.exit_code == 0, result.output

    result = ledger("transaction", "list", "--month", "2024-01", "--kind", "income")
    assert "Found 2 transaction(s)" in result.output

    result = ledger("transaction", "update", "99", "--amount", "1")
    assert result.exit_code == 1
    assert "Transaction 99 not found" in result.output


def test_import_dry_run(ledger, fixtures_dir):
    """Test the import preview lists invalid rows."""
    result = ledger(
        "import", str(fixtures_dir / "extrato.csv"), "--account", "Banco",
        "--income-category", "Ofertas", "--expense-category", "Energia", "--dry-run",
    )

    assert result.exit_code == 0, result.output
    assert "Parsed 5 row(s) (delimiter ';')" in result.output
    assert "Valid: 3" in result.output
    assert "Row 5: Invalid date (dd/mm/yyyy)" in result.output
    assert "Row 6: Unrecognized type (CRÉDITO/DÉBITO)" in result.output
    assert "Dry run: nothing imported." in result.output


def test_import_commit(ledger, fixtures_dir):
    """Test importing with an excluded row."""
    result = ledger(
        "import", str(fixtures_dir / "extrato.csv"), "--account", "Banco",
        "--income-category", "Ofertas", "--expense-category", "Energia",
        "--exclude", "4", "--yes",
    )

    assert result.exit_code == 0, result.output
    assert "Imported: 2 transactions" in result.output
    assert "Batches: 1" in result.output
    assert "Balance Banco: +R$ 1.084,56" in result.output

    result = ledger("transaction", "list", "--month", "2024-01", "--payment-method", "importado")
    assert "Found 2 transaction(s)" in result.output


def test_import_unknown_row(ledger, fixtures_dir):
    """Test excluding a row that does not exist."""
    result = ledger(
        "import", str(fixtures_dir / "extrato.csv"), "--account", "Banco", "--exclude", "42", "--yes",
    )

    assert result.exit_code == 1
    assert "Row 42 is not in the file" in result.output


def test_import_without_categories(ledger, fixtures_dir):
    """Test rows need a category of their kind."""
    result = ledger(
        "import", str(fixtures_dir / "extrato.csv"), "--account", "Banco",
        "--income-category", "Ofertas", "--yes",
    )

    assert result.exit_code == 1
    assert "Rows without account or category: 3, 4" in result.output


def test_import_bad_header(ledger, tmp_path):
    """Test a file with the wrong columns."""
    csv_file = tmp_path / "wrong.csv"
    csv_file.write_text("Date,Description,Amount\n2024-01-01,x,1.00\n", encoding="utf-8")

    result = ledger("import", str(csv_file), "--account", "Banco", "--yes")

    assert result.exit_code == 1
    assert "CSV header does not match" in result.output


def test_statement(ledger):
    """Test period summary and daily balances."""
    _add_sample_entries(ledger)
    ledger(
        "add", "--account", "Caixa", "--category", "Ofertas", "--kind", "income",
        "--amount", "500", "--date", "2023-12-20", "--description", "Dezembro",
    )

    result = ledger("statement", "--start-date", "2024-01-01", "--end-date", "2024-01-31")

    assert result.exit_code == 0, result.output
    assert "Ledger statement: 2024-01-01 to 2024-01-31" in result.output
    lines = result.output.splitlines()
    assert any(line.startswith("Carried in") and "R$ 500,00" in line for line in lines)
    assert any(line.startswith("Accumulated balance") and "R$ 590,00" in line for line in lines)
    assert any(line.startswith("2024-01-12") and line.endswith("R$ 590,00") for line in lines)

    result = ledger("statement", "--start-date", "2024-01-01", "--end-date", "2024-01-31", "--account", "Caixa")
    assert "Statement of Caixa" in result.output


def test_statement_conflicting_options(ledger):
    """Test period flags with explicit dates."""
    result = ledger("statement", "--this-month", "--start-date", "2024-01-01")

    assert result.exit_code == 1
    assert "cannot be combined" in result.output


def test_dashboard(ledger):
    """Test dashboard renders."""
    result = ledger("dashboard", "--months", "3")

    assert result.exit_code == 0, result.output
    assert "Total balance" in result.output
    assert "Caixa" in result.output


def test_report(ledger):
    """Test the consolidated report on screen."""
    _add_sample_entries(ledger)

    result = ledger("report", "--start-date", "2024-01-01", "--end-date", "2024-01-31")

    assert result.exit_code == 0, result.output
    assert "Entradas: R$ 100,00" in result.output
    assert "Saídas executadas: R$ 10,00" in result.output
    assert "Saídas programadas: R$ 40,00" in result.output
    assert "Resultado (total): R$ 50,00" in result.output

    result = ledger(
        "report", "--start-date", "2024-01-01", "--end-date", "2024-01-31", "--status", "executed", "--detail"
    )
    assert "Count: 2" in result.output


def test_report_export(ledger, tmp_path):
    """Test exporting every format."""
    _add_sample_entries(ledger)
    period = ["--start-date", "2024-01-01", "--end-date", "2024-01-31"]

    csv_path = tmp_path / "r.csv"
    result = ledger("report", *period, "--export", "csv", "--output", str(csv_path))
    assert result.exit_code == 0, result.output
    assert f"Exported report to {csv_path}" in result.output
    assert csv_path.read_text(encoding="utf-8").startswith("\ufeffTipo,Categoria,Conta")

    xls_path = tmp_path / "r.xls"
    ledger("report", *period, "--detail", "--export", "xls", "--output", str(xls_path))
    assert "Relatório de lançamentos" in xls_path.read_text(encoding="utf-8")

    html_path = tmp_path / "r.html"
    ledger("report", *period, "--export", "print", "--category", "Energia", "--output", str(html_path))
    html = html_path.read_text(encoding="utf-8")
    assert "Categoria: Energia" in html
    assert "Resultado (total)" in html


def test_report_default_file_name(ledger, cli_runner, temp_db):
    """Test the generated export file name."""
    with cli_runner.isolated_filesystem():
        result = ledger(
            "report", "--start-date", "2024-01-01", "--end-date", "2024-01-31", "--export", "csv"
        )

        assert result.exit_code == 0, result.output
        assert (
            "relatorio-consolidado_2024-01-01_a_2024-01-31_cat-Todas_conta-Todas.csv"
            in result.output
        )
