"""Tests for report export formats."""

import pytest
from datetime import date, datetime
from decimal import Decimal

from ledgerbook.domain.entities import (
    ExpenseStatus,
    Report,
    ReportFilters,
    StatusFilter,
    TransactionKind,
)
from ledgerbook.domain.export import (
    CSV_BOM,
    consolidated_csv,
    consolidated_excel_html,
    consolidated_print_document,
    consolidated_table,
    detail_csv,
    detail_excel_html,
    detail_print_document,
    export_file_name,
    filter_metadata,
    render_print_html,
    to_csv,
)
from ledgerbook.domain.report import consolidate, consolidated_totals, summarize

CATEGORY_NAMES = {1: "Ofertas", 2: "Energia <elétrica>"}
ACCOUNT_NAMES = {1: "Caixa"}
GENERATED_AT = datetime(2024, 2, 1, 9, 30, 5)


@pytest.fixture
def build_report(make_transaction):
    """Assemble a report from in-memory transactions."""

    def _build(transactions=None, **filters):
        if transactions is None:
            transactions = [
                make_transaction("2024-01-05", TransactionKind.INCOME, "100.00", category_id=1),
                make_transaction(
                    "2024-01-10",
                    TransactionKind.EXPENSE,
                    "40.00",
                    status=ExpenseStatus.SCHEDULED,
                    category_id=2,
                    description='Luz "janeiro", parcela 1',
                ),
                make_transaction(
                    "2024-01-12", TransactionKind.EXPENSE, "1234.50", category_id=2, payment_method="PIX"
                ),
            ]
        rows = consolidate(transactions, CATEGORY_NAMES, ACCOUNT_NAMES)
        return Report(
            filters=ReportFilters(date(2024, 1, 1), date(2024, 1, 31), **filters),
            category_label="Todas",
            account_label="Todas",
            transactions=tuple(transactions),
            category_names=CATEGORY_NAMES,
            account_names=ACCOUNT_NAMES,
            summary=summarize(transactions),
            consolidated=tuple(rows),
            totals=consolidated_totals(rows),
        )

    return _build


def test_to_csv_quoting():
    """Test BOM, union of columns and quoting rules."""
    text = to_csv([{"a": "x,y", "b": 'say "hi"'}, {"a": "semi;colon", "c": None}])

    assert text.startswith(CSV_BOM)
    assert text[len(CSV_BOM):].split("\n") == [
        "a,b,c",
        '"x,y","say ""hi""",',
        '"semi;colon",,',
    ]


def test_to_csv_newline_quoted():
    """Test cells with line breaks."""
    assert to_csv([{"a": "one\ntwo"}]).endswith('"one\ntwo"')


def test_filter_metadata(build_report):
    """Test filter columns appended to every row."""
    report = build_report(status=StatusFilter.EXECUTED, payment_method="  ")

    assert filter_metadata(report) == {
        "PeriodoInicio": "2024-01-01",
        "PeriodoFim": "2024-01-31",
        "FiltroCategoria": "Todas",
        "FiltroConta": "Todas",
        "FiltroStatus": "Status: Executadas",
        "FiltroForma": "Todas",
    }


def test_consolidated_csv(build_report):
    """Test consolidated CSV rows."""
    lines = consolidated_csv(build_report()).removeprefix(CSV_BOM).split("\n")

    assert lines[0] == (
        "Tipo,Categoria,Conta,Total,Executadas,Programadas,"
        "PeriodoInicio,PeriodoFim,FiltroCategoria,FiltroConta,FiltroStatus,FiltroForma"
    )
    assert lines[1].startswith("Saída,Energia <elétrica>,Caixa,1274.50,1234.50,40.00,")
    assert lines[2].startswith("Entrada,Ofertas,Caixa,100.00,,,")


def test_detail_csv(build_report):
    """Test detail CSV escapes descriptions."""
    lines = detail_csv(build_report()).removeprefix(CSV_BOM).split("\n")

    assert lines[0].startswith("Data,Tipo,Status,Descricao,Categoria,Conta,Forma,Valor,")
    assert lines[1].startswith("2024-01-05,Entrada,—,Entry,Ofertas,Caixa,,100.00,")
    assert '"Luz ""janeiro"", parcela 1"' in lines[2]
    assert len(lines) == 4


def test_consolidated_table(build_report):
    """Test totals row and income placeholders."""
    table = consolidated_table(build_report())

    assert table.columns == ("Tipo", "Categoria", "Conta", "Total", "Exec", "Prog")
    assert table.footer_label == "Totais"
    assert [c.text for c in table.footer] == ["R$ 1.374,50", "R$ 1.234,50", "R$ 40,00"]
    assert [c.text for c in table.rows[1][4:]] == ["—", "—"]


def test_excel_html_escapes(build_report):
    """Test spreadsheet HTML content and escaping."""
    html = consolidated_excel_html(build_report())

    assert "<title>Relatório consolidado (Categoria + Conta)</title>" in html
    assert "Energia &lt;elétrica&gt;" in html
    assert "Energia <elétrica>" not in html
    assert '<td class="num">R$ 1.274,50</td>' in html
    assert "Status: Todos" in html


def test_detail_excel_html(build_report):
    """Test detail table without totals row."""
    html = detail_excel_html(build_report())

    assert "<h1>Relatório de lançamentos</h1>" in html
    assert "<th>Descrição</th>" in html
    assert "<tfoot>" not in html
    assert "Luz &#34;janeiro&#34;, parcela 1" in html


def test_consolidated_print(build_report):
    """Test printable consolidated page."""
    doc = consolidated_print_document(build_report(), GENERATED_AT)

    assert doc.generated_at == "01/02/2024 09:30:05"
    assert doc.chips[0] == "Período: 2024-01-01 → 2024-01-31"
    assert dict(doc.kpis)["Resultado (total)"] == "-R$ 1.174,50"

    html = render_print_html(doc)
    assert "Relatório gerado em 01/02/2024 09:30:05" in html
    assert "Responsável (nome e assinatura)" in html
    assert "Financeiro Igreja • Relatórios" in html
    assert "Página 1" in html


def test_detail_print(build_report):
    """Test printable detail page with total."""
    doc = detail_print_document(build_report(), GENERATED_AT)

    kpis = dict(doc.kpis)
    assert kpis["Saídas (exec + prog)"] == "R$ 1.274,50"
    assert kpis["Soma dos lançamentos"] == "R$ 1.374,50"
    assert doc.table.footer_label == "Total"
    assert doc.table.footer_span == 7

    html = render_print_html(doc)
    assert '<td colspan="7">Total</td>' in html


def test_empty_report(build_report):
    """Test export of a report without rows."""
    report = build_report(transactions=[])

    assert consolidated_csv(report) == CSV_BOM
    assert "<tbody>" in detail_excel_html(report)


def test_export_file_name(build_report):
    """Test file names embed period and filters."""
    report = build_report()

    assert (
        export_file_name("relatorio-consolidado", report, "csv")
        == "relatorio-consolidado_2024-01-01_a_2024-01-31_cat-Todas_conta-Todas.csv"
    )
