"""Report export: CSV, spreadsheet-compatible HTML and printable HTML."""

import re
from dataclasses import dataclass
from datetime import datetime
from decimal import Decimal
from pathlib import Path
from typing import Iterable, Optional

from jinja2 import Environment, FileSystemLoader, select_autoescape

from ledgerbook.domain.entities import Report, StatusFilter, TransactionKind
from ledgerbook.domain.report import (
    DETAIL_COLUMNS,
    detail_rows,
    detail_total,
    kind_label,
)
from ledgerbook.utils.amount_parser import format_currency_localized
from ledgerbook.utils.text import safe_file_name

TEMPLATES_DIR = Path(__file__).parent / "templates"

BRAND = "Financeiro Igreja"
CSV_BOM = "\ufeff"

STATUS_PILLS = {
    StatusFilter.EXECUTED: "Status: Executadas",
    StatusFilter.SCHEDULED: "Status: Programadas",
    StatusFilter.ALL: "Status: Todos",
}

_NEEDS_QUOTES = re.compile(r'[",\n\r;]')


def status_pill(status: StatusFilter) -> str:
    return STATUS_PILLS[status]


def payment_label(report: Report) -> str:
    return (report.filters.payment_method or "").strip() or "Todas"


def filter_metadata(report: Report) -> dict[str, str]:
    """Filter description appended to every exported CSV row."""
    f = report.filters
    return {
        "PeriodoInicio": f.start_date.isoformat(),
        "PeriodoFim": f.end_date.isoformat(),
        "FiltroCategoria": report.category_label,
        "FiltroConta": report.account_label,
        "FiltroStatus": status_pill(f.status),
        "FiltroForma": payment_label(report),
    }


def _csv_cell(value: object) -> str:
    text = "" if value is None else str(value)
    if _NEEDS_QUOTES.search(text):
        return '"' + text.replace('"', '""') + '"'
    return text


def to_csv(rows: Iterable[dict[str, object]]) -> str:
    """Serialize dict rows as comma-separated text with a UTF-8 BOM.

    Columns are the union of all keys in first-seen order. Cells holding a
    quote, comma, semicolon or line break are quoted with quotes doubled.
    """
    rows = list(rows)
    columns: list[str] = []
    for row in rows:
        for key in row:
            if key not in columns:
                columns.append(key)
    lines = [",".join(columns)]
    lines.extend(",".join(_csv_cell(row.get(c)) for c in columns) for row in rows)
    return CSV_BOM + "\n".join(lines)


def consolidated_csv_rows(report: Report) -> list[dict[str, object]]:
    meta = filter_metadata(report)
    return [
        {
            "Tipo": kind_label(r.kind),
            "Categoria": r.category_name,
            "Conta": r.account_name,
            "Total": r.total,
            "Executadas": r.executed if r.kind == TransactionKind.EXPENSE else "",
            "Programadas": r.scheduled if r.kind == TransactionKind.EXPENSE else "",
            **meta,
        }
        for r in report.consolidated
    ]


def detail_csv_rows(report: Report) -> list[dict[str, object]]:
    meta = filter_metadata(report)
    return [{**row, **meta} for row in detail_rows(report)]


def consolidated_csv(report: Report) -> str:
    return to_csv(consolidated_csv_rows(report))


def detail_csv(report: Report) -> str:
    return to_csv(detail_csv_rows(report))


@dataclass(frozen=True)
class Cell:
    """One rendered table cell."""

    text: str
    numeric: bool = False


@dataclass(frozen=True)
class Table:
    """Rendered table with an optional totals row.

    The totals row starts with a label spanning ``footer_span`` columns.
    """

    columns: tuple[str, ...]
    rows: tuple[tuple[Cell, ...], ...]
    footer_label: Optional[str] = None
    footer_span: int = 1
    footer: tuple[Cell, ...] = ()


@dataclass(frozen=True)
class PrintDocument:
    """Content of a printable report page."""

    title: str
    heading: str
    description: str
    generated_at: str
    chips: tuple[str, ...]
    kpis: tuple[tuple[str, str], ...]
    table: Table
    signatures: tuple[str, ...] = (
        "Responsável (nome e assinatura)",
        "Tesouraria / Conselho (nome e assinatura)",
    )
    brand: str = BRAND
    footer_left: str = f"{BRAND} • Relatórios"
    footer_right: str = "Página 1"


def _money(value: Decimal) -> Cell:
    return Cell(format_currency_localized(value), numeric=True)


def consolidated_table(report: Report) -> Table:
    rows = []
    for r in report.consolidated:
        is_expense = r.kind == TransactionKind.EXPENSE
        rows.append(
            (
                Cell(kind_label(r.kind)),
                Cell(r.category_name),
                Cell(r.account_name),
                _money(r.total),
                _money(r.executed) if is_expense else Cell("—", numeric=True),
                _money(r.scheduled) if is_expense else Cell("—", numeric=True),
            )
        )
    totals = report.totals
    return Table(
        columns=("Tipo", "Categoria", "Conta", "Total", "Exec", "Prog"),
        rows=tuple(rows),
        footer_label="Totais",
        footer_span=3,
        footer=(
            _money(totals.grand_total),
            _money(totals.expense_executed),
            _money(totals.expense_scheduled),
        ),
    )


def detail_table(report: Report, with_total: bool = False) -> Table:
    rows = tuple(
        (
            Cell(row["Data"]),
            Cell(row["Tipo"]),
            Cell(row["Status"]),
            Cell(row["Descricao"]),
            Cell(row["Categoria"]),
            Cell(row["Conta"]),
            Cell(row["Forma"]),
            _money(row["Valor"]),
        )
        for row in detail_rows(report)
    )
    columns = tuple("Descrição" if c == "Descricao" else c for c in DETAIL_COLUMNS)
    if not with_total:
        return Table(columns=columns, rows=rows)
    return Table(
        columns=columns,
        rows=rows,
        footer_label="Total",
        footer_span=7,
        footer=(_money(detail_total(report)),),
    )


def _environment() -> Environment:
    return Environment(
        loader=FileSystemLoader(str(TEMPLATES_DIR)),
        autoescape=select_autoescape(["html"]),
    )


def _meta_line(report: Report) -> str:
    f = report.filters
    return (
        f"Período: {f.start_date.isoformat()} até {f.end_date.isoformat()} • "
        f"Categoria: {report.category_label} • Conta: {report.account_label} • "
        f"{status_pill(f.status)} • Forma: {payment_label(report)}"
    )


def _excel_html(heading: str, meta: str, table: Table) -> str:
    template = _environment().get_template("excel.html")
    return template.render(title=heading, heading=heading, meta=meta, table=table)


def consolidated_excel_html(report: Report) -> str:
    """HTML table that spreadsheet programs open as a workbook."""
    return _excel_html(
        "Relatório consolidado (Categoria + Conta)",
        _meta_line(report),
        consolidated_table(report),
    )


def detail_excel_html(report: Report) -> str:
    return _excel_html(
        "Relatório de lançamentos",
        _meta_line(report),
        detail_table(report),
    )


def _chips(report: Report) -> tuple[str, ...]:
    f = report.filters
    return (
        f"Período: {f.start_date.isoformat()} → {f.end_date.isoformat()}",
        f"Categoria: {report.category_label}",
        f"Conta: {report.account_label}",
        status_pill(f.status),
        f"Forma: {payment_label(report)}",
    )


def _generated(generated_at: datetime) -> str:
    return generated_at.strftime("%d/%m/%Y %H:%M:%S")


def consolidated_print_document(report: Report, generated_at: datetime) -> PrintDocument:
    """Printable consolidated report with income/expense indicators."""
    s = report.summary
    return PrintDocument(
        title="Relatório consolidado",
        heading="Consolidado (Categoria + Conta)",
        description="Resumo por categoria e conta com totais de entradas e saídas (exec/prog).",
        generated_at=_generated(generated_at),
        chips=_chips(report),
        kpis=(
            ("Entradas", format_currency_localized(s.income)),
            ("Saídas executadas", format_currency_localized(s.expense_executed)),
            ("Saídas programadas", format_currency_localized(s.expense_scheduled)),
            ("Resultado (total)", format_currency_localized(s.net_all)),
        ),
        table=consolidated_table(report),
    )


def detail_print_document(report: Report, generated_at: datetime) -> PrintDocument:
    """Printable transaction list with a total line."""
    s = report.summary
    return PrintDocument(
        title="Relatório de lançamentos",
        heading="Lançamentos (detalhe)",
        description="Lista de lançamentos conforme filtros aplicados.",
        generated_at=_generated(generated_at),
        chips=_chips(report),
        kpis=(
            ("Entradas", format_currency_localized(s.income)),
            (
                "Saídas (exec + prog)",
                format_currency_localized(s.expense_executed + s.expense_scheduled),
            ),
            ("Resultado (total)", format_currency_localized(s.net_all)),
            ("Soma dos lançamentos", format_currency_localized(detail_total(report))),
        ),
        table=detail_table(report, with_total=True),
    )


def render_print_html(document: PrintDocument) -> str:
    """Render a print document as a standalone HTML page."""
    template = _environment().get_template("print.html")
    return template.render(doc=document)


def export_file_name(prefix: str, report: Report, extension: str) -> str:
    """File name embedding the period and the category/account filters.

    Args:
        prefix: "relatorio-consolidado" or "relatorio-lancamentos"
        report: Exported report
        extension: "csv" or "xls"
    """
    f = report.filters
    return safe_file_name(
        f"{prefix}_{f.start_date.isoformat()}_a_{f.end_date.isoformat()}"
        f"_cat-{report.category_label}_conta-{report.account_label}.{extension}"
    )
