"""Command-line entry point for the ABA Clinic billing client."""

from __future__ import annotations

import argparse
import getpass
import sys
from collections.abc import Sequence
from datetime import date
from decimal import Decimal

import pandas as pd

from aba_billing.auth.store import AuthStore
from aba_billing.billing.board import BillingBoard
from aba_billing.billing.kpis import BillingKPIs
from aba_billing.billing.pipeline import InvoiceQuery
from aba_billing.core.config import Config
from aba_billing.core.enums import InvoiceStatus, SortKey, StatusChip
from aba_billing.core.exceptions import (
    AuthenticationError,
    AuthorizationError,
    NotFoundError,
    ServiceError,
)
from aba_billing.core.startup import bootstrap
from aba_billing.schemas.invoices import Invoice
from aba_billing.services.auth_service import AuthService
from aba_billing.services.consultation_service import ConsultationService
from aba_billing.services.invoice_service import InvoiceService

EXIT_OK = 0
EXIT_FAILED = 1
EXIT_AUTH = 2


def _alert(message: str) -> None:
    print(f"! {message}", file=sys.stderr)


def fmt_money(value: Decimal, currency: str) -> str:
    return f"{value:,.2f} {currency}"


def _build_board(cfg: Config) -> BillingBoard:
    session = AuthStore(cfg.AUTH_STORE_PATH, fallback_token=cfg.API_TOKEN).session()
    return BillingBoard(
        session=session,
        invoice_service=InvoiceService(session),
        consultation_service=ConsultationService(session),
        notify=_alert,
        currency=cfg.BILLING_CURRENCY,
        ownership_fallback=cfg.OWNERSHIP_FALLBACK,
    )


def _query_from_args(args: argparse.Namespace) -> InvoiceQuery:
    return InvoiceQuery(
        chip=StatusChip(args.chip),
        text=args.search or "",
        date_from=args.date_from,
        date_to=args.date_to,
        sort_by=SortKey(args.sort),
        ascending=args.asc,
    )


def invoices_table(invoices: Sequence[Invoice]) -> pd.DataFrame:
    return pd.DataFrame(
        [
            {
                "Fatura": inv.label,
                "Data": inv.date[:10],
                "Vencimento": inv.due_or_issue_date[:10],
                "Valor": fmt_money(inv.amount, inv.currency),
                "Estado": inv.status.value,
                "Descrição": inv.description,
            }
            for inv in invoices
        ]
    )


def render_summary(kpis: BillingKPIs, currency: str) -> str:
    lines = [
        f"Saldo em Aberto: {fmt_money(kpis.outstanding_total, currency)} ({kpis.outstanding_count} faturas)",
        f"Vencidas: {fmt_money(kpis.overdue_total, currency)} ({len(kpis.overdue)} fatura(s))",
        f"Pago este mês: {fmt_money(kpis.paid_this_month, currency)} ({kpis.paid_count} pagas no total)",
    ]
    if kpis.next_due is not None:
        lines.append(
            f"Próximo vencimento: {kpis.next_due.due_or_issue_date[:10]} "
            f"({fmt_money(kpis.next_due.amount, currency)})"
        )
    else:
        lines.append("Próximo vencimento: —")
    if kpis.most_overdue is not None:
        inv = kpis.most_overdue
        lines.append(
            f"1 fatura vencida requer atenção: #{inv.number or inv.id} está "
            f"{kpis.most_overdue_days} dia(s) em atraso ({fmt_money(inv.amount, currency)})."
        )
    return "\n".join(lines)


def cmd_login(args: argparse.Namespace, cfg: Config) -> int:
    password = args.password or getpass.getpass("Password: ")
    result = AuthService().login(args.email, password)
    AuthStore(cfg.AUTH_STORE_PATH).set_user(result.user, result.token)
    print(f"Sessão iniciada: {result.user.name or result.user.email}")
    return EXIT_OK


def cmd_logout(args: argparse.Namespace, cfg: Config) -> int:
    AuthStore(cfg.AUTH_STORE_PATH).logout()
    print("Sessão terminada.")
    return EXIT_OK


def cmd_invoices(args: argparse.Namespace, cfg: Config) -> int:
    board = _build_board(cfg)
    if not board.load():
        return EXIT_FAILED
    rows = board.filtered(_query_from_args(args))
    if not rows:
        print("Nenhuma fatura encontrada" if args.search else "Nenhuma fatura disponível")
        return EXIT_OK
    print(invoices_table(rows).to_string(index=False))
    return EXIT_OK


def cmd_summary(args: argparse.Namespace, cfg: Config) -> int:
    board = _build_board(cfg)
    if not board.load():
        return EXIT_FAILED
    session = board.session
    print(f"{session.role.label} • {session.display_name}")
    print(render_summary(board.kpis(), board.currency))
    return EXIT_OK


def cmd_set_status(args: argparse.Namespace, cfg: Config) -> int:
    board = _build_board(cfg)
    if not board.load():
        return EXIT_FAILED
    result = board.set_status(args.invoice_id, InvoiceStatus(args.status))
    if result.ok and result.invoice is not None:
        print(f"{result.invoice.label}: {result.invoice.status.value}")
    return EXIT_OK if result.ok else EXIT_FAILED


def cmd_upload_proof(args: argparse.Namespace, cfg: Config) -> int:
    board = _build_board(cfg)
    if not board.load():
        return EXIT_FAILED
    result = board.upload_proof(args.invoice_id, args.file)
    if result.ok and result.invoice is not None:
        print(f"{result.invoice.label}: comprovativo {result.invoice.proof_url or 'enviado'}")
    return EXIT_OK if result.ok else EXIT_FAILED


def cmd_download(args: argparse.Namespace, cfg: Config) -> int:
    board = _build_board(cfg)
    if not board.load():
        return EXIT_FAILED
    path = board.download(board.find_visible(args.invoice_id), args.dir or cfg.EXPORT_DIR)
    if path is None:
        return EXIT_FAILED
    print(path)
    return EXIT_OK


def cmd_create(args: argparse.Namespace, cfg: Config) -> int:
    board = _build_board(cfg)
    matches = board.search_consultations(str(args.consultation), limit=cfg.CONSULTATION_SEARCH_LIMIT)
    consultation = next((c for c in matches if c.id == args.consultation), None)
    result = board.create_invoice(consultation, args.amount, args.description, customer_id=args.customer_id)
    if result.ok and result.invoice is not None:
        print(f"{result.invoice.label}: {fmt_money(result.invoice.amount, result.invoice.currency)}")
    return EXIT_OK if result.ok else EXIT_FAILED


def cmd_consultations(args: argparse.Namespace, cfg: Config) -> int:
    board = _build_board(cfg)
    rows = board.search_consultations(args.search or "", limit=args.limit or cfg.CONSULTATION_SEARCH_LIMIT)
    if not rows:
        print("Nenhuma consulta encontrada")
        return EXIT_OK
    frame = pd.DataFrame(
        [
            {
                "Consulta": f"#{c.id}",
                "Data": c.date[:16],
                "Criança": c.child_name,
                "Psicólogo": c.psychologist_name or "—",
                "Estado": c.status or "",
            }
            for c in rows
        ]
    )
    print(frame.to_string(index=False))
    return EXIT_OK


def cmd_export(args: argparse.Namespace, cfg: Config) -> int:
    board = _build_board(cfg)
    if not board.load():
        return EXIT_FAILED
    print(board.export_csv(args.dir or cfg.EXPORT_DIR, _query_from_args(args)))
    return EXIT_OK


def _add_query_arguments(parser: argparse.ArgumentParser) -> None:
    parser.add_argument(
        "--chip",
        choices=[c.value for c in StatusChip],
        default=StatusChip.ALL.value,
        help=", ".join(f"{c.value} ({c.label})" for c in StatusChip),
    )
    parser.add_argument("--search", help="Match invoice id, number or description")
    parser.add_argument("--from", dest="date_from", type=date.fromisoformat, help="Issue date lower bound (YYYY-MM-DD)")
    parser.add_argument("--to", dest="date_to", type=date.fromisoformat, help="Issue date upper bound (YYYY-MM-DD)")
    parser.add_argument("--sort", choices=[k.value for k in SortKey], default=SortKey.DATE.value)
    parser.add_argument("--asc", action="store_true", help="Sort ascending (default: descending)")


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(prog="aba-billing", description="ABA Clinic billing client.")
    sub = parser.add_subparsers(dest="command", required=True)

    p_login = sub.add_parser("login", help="Authenticate and persist the session")
    p_login.add_argument("--email", required=True)
    p_login.add_argument("--password", help="Prompted when omitted")
    p_login.set_defaults(func=cmd_login)

    p_logout = sub.add_parser("logout", help="Forget the persisted session")
    p_logout.set_defaults(func=cmd_logout)

    p_list = sub.add_parser("invoices", help="List visible invoices")
    _add_query_arguments(p_list)
    p_list.set_defaults(func=cmd_invoices)

    p_summary = sub.add_parser("summary", help="Show billing KPIs")
    p_summary.set_defaults(func=cmd_summary)

    p_status = sub.add_parser("set-status", help="Change an invoice status (admin)")
    p_status.add_argument("invoice_id", type=int)
    p_status.add_argument("status", choices=[s.value for s in InvoiceStatus])
    p_status.set_defaults(func=cmd_set_status)

    p_proof = sub.add_parser("upload-proof", help="Attach a payment proof (guardian)")
    p_proof.add_argument("invoice_id", type=int)
    p_proof.add_argument("file")
    p_proof.set_defaults(func=cmd_upload_proof)

    p_download = sub.add_parser("download", help="Save an invoice PDF")
    p_download.add_argument("invoice_id", type=int)
    p_download.add_argument("--dir")
    p_download.set_defaults(func=cmd_download)

    p_create = sub.add_parser("create", help="Create an invoice for a consultation (admin)")
    p_create.add_argument("--consultation", type=int, required=True)
    p_create.add_argument("--amount", required=True)
    p_create.add_argument("--description")
    p_create.add_argument("--customer-id", type=int, help="Billed guardian, when the backend expects one")
    p_create.set_defaults(func=cmd_create)

    p_consult = sub.add_parser("consultations", help="Search consultations for invoicing (admin)")
    p_consult.add_argument("--search")
    p_consult.add_argument("--limit", type=int)
    p_consult.set_defaults(func=cmd_consultations)

    p_export = sub.add_parser("export", help="Export the filtered invoices to CSV")
    _add_query_arguments(p_export)
    p_export.add_argument("--dir")
    p_export.set_defaults(func=cmd_export)

    return parser


def main(argv: Sequence[str] | None = None) -> int:
    args = build_parser().parse_args(argv)
    cfg = bootstrap()
    try:
        return args.func(args, cfg)
    except (AuthenticationError, AuthorizationError) as exc:
        _alert(str(exc))
        return EXIT_AUTH
    except (NotFoundError, ServiceError, OSError) as exc:
        _alert(str(exc))
        return EXIT_FAILED


def run() -> None:
    sys.exit(main())


if __name__ == "__main__":
    run()
