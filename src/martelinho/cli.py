"""Command-line interface for operators.

Provides subcommands: `init-db`, `summary`, `months`, `month-detail` and
`invoice`. Each command is implemented as a `cmd_*` function that accepts
an argparse namespace. Reports are printed as tables on stdout.
"""
from __future__ import annotations

import argparse
import logging
from datetime import datetime
from pathlib import Path

import pandas as pd

from martelinho.config import get_settings
from martelinho.logging_config import configure_logging
from martelinho.db import SERVICES_COLLECTION, connect, ensure_indexes
from martelinho.finance.periods import DISPLAY_MONTHS
from martelinho.finance.summary import (
    get_current_period_summaries,
    get_growth_series,
    get_month_detail,
    get_trailing_monthly_summaries,
)
from martelinho.formatters import format_currency, format_date, format_growth, format_repaired_parts
from martelinho.invoice.build import invoice_filename, service_to_invoice
from martelinho.invoice.pdf import build_invoice_pdf
from martelinho.services.repository import ServiceRepository

log = logging.getLogger(__name__)


# --------------------------------------------------
# Helpers
# --------------------------------------------------
def _repository() -> ServiceRepository:
    s = get_settings()
    db = connect(s)
    return ServiceRepository(db[SERVICES_COLLECTION])


def _reference(args: argparse.Namespace):
    """Return the reference instant: `--date` or now in the business timezone."""
    if args.date:
        return args.date
    return datetime.now(get_settings().tzinfo)


def _print_summaries(summaries, growth=None) -> None:
    rows = []
    for i, s in enumerate(summaries):
        row = {
            "Período": s.period,
            "Qtd. Serviços": s.count,
            "Valor Total": format_currency(s.total),
            "Média por Serviço": format_currency(s.average),
        }
        if growth is not None:
            row["Crescimento"] = format_growth(growth[i])
        rows.append(row)
    print(pd.DataFrame(rows).to_string(index=False))


# --------------------------------------------------
# Commands
# --------------------------------------------------
def cmd_init_db(_: argparse.Namespace) -> None:
    """Create the MongoDB indexes used by the application."""
    ensure_indexes(connect(get_settings()))


def cmd_summary(args: argparse.Namespace) -> None:
    """Print today / week / month / year / last-30-days totals for a tenant."""
    tz = get_settings().tzinfo
    summaries = get_current_period_summaries(_repository(), args.tenant, _reference(args), tz)
    _print_summaries(summaries)


def cmd_months(args: argparse.Namespace) -> None:
    """Print trailing monthly totals with month-over-month growth."""
    tz = get_settings().tzinfo
    monthly = get_trailing_monthly_summaries(
        _repository(), args.tenant, _reference(args), args.count, tz
    )
    _print_summaries(monthly, get_growth_series(monthly))


def cmd_month_detail(args: argparse.Namespace) -> None:
    """Print the services of one calendar month."""
    detail = get_month_detail(_repository(), args.tenant, args.month, get_settings().tzinfo)
    if not detail.records:
        log.warning("No services in %s", detail.month.label)
    else:
        rows = [
            {
                "Data": format_date(r.service_date),
                "Cliente": r.client_name,
                "Carro": f"{r.car_model} - {r.car_plate}",
                "Peças": format_repaired_parts(r.repaired_parts),
                "Valor": format_currency(r.service_value),
            }
            for r in detail.records
        ]
        print(pd.DataFrame(rows).to_string(index=False))
    print(f"\n{detail.month.label}: total {format_currency(detail.total)}, "
          f"média {format_currency(detail.average)}, {detail.count} serviço(s)")
    if detail.skipped:
        log.warning("%d service(s) with invalid data not listed", detail.skipped)


def cmd_invoice(args: argparse.Namespace) -> None:
    """Write the PDF invoice of one service."""
    record = _repository().get_service(args.tenant, args.service_id)
    invoice = service_to_invoice(record, client_phone=args.phone)
    out_dir: Path = args.out_dir
    out_dir.mkdir(parents=True, exist_ok=True)
    out_path = out_dir / invoice_filename(invoice)
    out_path.write_bytes(build_invoice_pdf(invoice))
    log.info("Invoice written to %s", out_path)


# --------------------------------------------------
# CLI
# --------------------------------------------------
def build_parser() -> argparse.ArgumentParser:
    """Build and return the top-level argument parser for the CLI.

    Returns:
        Configured argparse.ArgumentParser instance.
    """
    p = argparse.ArgumentParser(prog="martelinho")
    sub = p.add_subparsers(dest="cmd", required=True)

    sub.add_parser("init-db")

    p_summary = sub.add_parser("summary")
    p_summary.add_argument("--tenant", required=True)
    p_summary.add_argument("--date", default=None, help="reference date (yyyy-MM-dd)")

    p_months = sub.add_parser("months")
    p_months.add_argument("--tenant", required=True)
    p_months.add_argument("--date", default=None, help="reference date (yyyy-MM-dd)")
    p_months.add_argument("--count", type=int, default=DISPLAY_MONTHS)

    p_detail = sub.add_parser("month-detail")
    p_detail.add_argument("--tenant", required=True)
    p_detail.add_argument("--month", required=True, help="any date in the month (yyyy-MM-dd)")

    p_invoice = sub.add_parser("invoice")
    p_invoice.add_argument("--tenant", required=True)
    p_invoice.add_argument("--service-id", required=True)
    p_invoice.add_argument("--phone", default=None)
    p_invoice.add_argument("--out-dir", type=Path, default=Path("invoices"))

    return p


COMMANDS = {
    "init-db": cmd_init_db,
    "summary": cmd_summary,
    "months": cmd_months,
    "month-detail": cmd_month_detail,
    "invoice": cmd_invoice,
}


def main() -> None:
    """CLI entry point: parse args, configure logging and dispatch commands."""
    configure_logging(get_settings().log_path)

    args = build_parser().parse_args()

    command = COMMANDS.get(args.cmd)
    if command is None:
        raise SystemExit(2)
    command(args)


if __name__ == "__main__":
    main()
