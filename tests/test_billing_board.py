from __future__ import annotations

from datetime import timezone
from decimal import Decimal

import pytest

from aba_billing.billing import board as board_module
from aba_billing.billing.board import BillingBoard
from aba_billing.billing.pipeline import InvoiceQuery
from aba_billing.core.enums import InvoiceAction, InvoiceStatus, StatusChip
from aba_billing.core.exceptions import AuthorizationError, NotFoundError
from aba_billing.schemas.consultations import ConsultationLite
from aba_billing.services.consultation_service import ConsultationService
from aba_billing.services.invoice_service import InvoiceService

SERVER_INVOICES = [
    {"id": 1, "number": "F-001", "date": "2026-10-02", "dueDate": "2026-11-02", "total": "100.00", "status": "pending"},
    {"id": 3, "number": "F-003", "date": "2026-09-20", "dueDate": "2026-10-01", "total": "200.00", "status": "pending"},
    {"id": 4, "number": "F-004", "date": "2026-10-05", "total": 80, "status": "paid"},
]


def _board(session, http, now, notices):
    return BillingBoard(
        session=session,
        invoice_service=InvoiceService(session, base_url="http://api.test", timeout=5, http=http),
        consultation_service=ConsultationService(session, base_url="http://api.test", timeout=5, http=http),
        clock=lambda: now,
        notify=notices.append,
    )


@pytest.fixture
def notices():
    return []


@pytest.fixture
def loaded_board(admin_session, fake_http, respond, now, notices):
    fake_http.queue(respond(body=SERVER_INVOICES))
    board = _board(admin_session, fake_http, now, notices)
    assert board.load() is True
    return board


def test_load_maps_statuses(loaded_board):
    statuses = {inv.id: inv.status for inv in loaded_board.invoices}
    assert statuses == {1: InvoiceStatus.PENDING, 3: InvoiceStatus.OVERDUE, 4: InvoiceStatus.PAID}


def test_create_invoice_for_consultation_12(loaded_board, fake_http, respond, now, notices):
    before = loaded_board.kpis()
    consultation = ConsultationLite(id=12, date="2026-10-18T09:00:00", child_name="Ana", psychologist_name="Dra. Rita")
    fake_http.queue(
        respond(
            body={
                "id": 99,
                "number": f"INV-C12-{int(now.timestamp() * 1000)}",
                "date": now.isoformat(),
                "total": "500.00",
                "status": "pending",
                "consultationId": 12,
            }
        )
    )

    result = loaded_board.create_invoice(consultation, "500", customer_id=44)

    assert result.ok is True
    body = fake_http.calls[-1]["json"]
    assert fake_http.calls[-1]["url"] == "http://api.test/invoices/12/invoices"
    assert body["number"] == f"INV-C12-{int(now.timestamp() * 1000)}"
    assert body["total"] == 500.0
    assert body["status"] == "pending"
    assert body["date"] == now.astimezone(timezone.utc).strftime("%Y-%m-%dT%H:%M:%S.000Z")
    assert body["customerId"] == 44
    assert body["description"] == "Consulta #12 • Ana com Dra. Rita"
    assert "consultationId" not in body

    created = loaded_board.invoices[0]
    assert created.id == 99
    assert created.status is InvoiceStatus.PENDING
    assert loaded_board.kpis().outstanding_total == before.outstanding_total + Decimal("500")
    assert notices == [board_module.CREATE_SUCCEEDED]
    assert loaded_board.creating is False


def test_mark_overdue_invoice_paid(loaded_board, fake_http, respond):
    assert loaded_board.kpis().overdue_total == Decimal("200.00")
    fake_http.queue(respond(body={**SERVER_INVOICES[1], "status": "paid", "paidAt": "2026-10-19T10:00:00"}))

    result = loaded_board.set_status(3, InvoiceStatus.PAID)

    assert result.ok is True
    assert fake_http.calls[-1]["url"] == "http://api.test/invoices/3/status"
    assert fake_http.calls[-1]["json"] == {"status": "paid"}
    assert loaded_board.find(3).status is InvoiceStatus.PAID
    assert loaded_board.kpis().overdue_total == Decimal("0")
    assert 3 not in [inv.id for inv in loaded_board.filtered(InvoiceQuery(chip=StatusChip.OVERDUE))]
    assert loaded_board.working_ids == frozenset()


def test_reopening_an_invoice_sends_pending(loaded_board, fake_http, respond):
    fake_http.queue(respond(body=SERVER_INVOICES[2] | {"status": "pending"}))

    result = loaded_board.set_status(4, "Overdue")

    assert fake_http.calls[-1]["json"] == {"status": "pending"}
    assert result.invoice is not None
    assert result.invoice.status is InvoiceStatus.PENDING


def test_failed_mutation_leaves_collection_unchanged(loaded_board, fake_http, respond, notices):
    before = loaded_board.invoices
    fake_http.queue(respond(500, {"detail": "Servidor em baixo"}), respond(502))

    first = loaded_board.set_status(3, InvoiceStatus.PAID)
    second = loaded_board.set_status(3, InvoiceStatus.PAID)

    assert first.ok is False
    assert second.ok is False
    assert loaded_board.invoices == before
    assert notices == ["Servidor em baixo", board_module.STATUS_FAILED]
    assert not loaded_board.is_working(3)


def test_second_action_on_working_invoice_is_refused(loaded_board, fake_http, respond):
    nested = []

    def _slow_server(method, url, kwargs):
        nested.append(loaded_board.set_status(3, InvoiceStatus.FAILED))
        return respond(body={**SERVER_INVOICES[1], "status": "paid"})

    fake_http.queue(_slow_server)

    result = loaded_board.set_status(3, InvoiceStatus.PAID)

    assert result.ok is True
    assert nested[0].ok is False
    assert nested[0].message == board_module.ALREADY_WORKING
    assert len(fake_http.calls) == 2


def test_create_validation_happens_before_any_request(loaded_board, fake_http, notices):
    consultation = ConsultationLite(id=12, date="2026-10-18")
    calls_before = len(fake_http.calls)

    assert loaded_board.create_invoice(None, "500").message == board_module.SELECT_CONSULTATION
    assert loaded_board.create_invoice(consultation, "0").message == board_module.AMOUNT_REQUIRED
    assert loaded_board.create_invoice(consultation, "abc").message == board_module.AMOUNT_REQUIRED
    assert loaded_board.create_invoice(consultation, None).message == board_module.AMOUNT_REQUIRED

    assert len(fake_http.calls) == calls_before
    assert notices == [
        board_module.SELECT_CONSULTATION,
        board_module.AMOUNT_REQUIRED,
        board_module.AMOUNT_REQUIRED,
        board_module.AMOUNT_REQUIRED,
    ]


def test_create_failure_reports_server_message(loaded_board, fake_http, respond, notices):
    before = loaded_board.invoices
    fake_http.queue(respond(409, {"message": "Fatura duplicada"}))

    result = loaded_board.create_invoice(ConsultationLite(id=12, date="2026-10-18"), 500)

    assert result.ok is False
    assert loaded_board.invoices == before
    assert notices == ["Fatura duplicada"]


def test_failed_reload_keeps_previous_collection(loaded_board, fake_http, respond, notices):
    before = loaded_board.invoices
    fake_http.queue(respond(500))

    assert loaded_board.load() is False
    assert loaded_board.invoices == before
    assert notices == [board_module.LOAD_FAILED]


def test_role_restricted_actions_fail_before_any_request(parent_session, fake_http, respond, now, notices):
    fake_http.queue(respond(body=SERVER_INVOICES))
    board = _board(parent_session, fake_http, now, notices)
    board.load()

    with pytest.raises(AuthorizationError):
        board.set_status(3, InvoiceStatus.PAID)
    with pytest.raises(AuthorizationError):
        board.create_invoice(ConsultationLite(id=12, date="2026-10-18"), 500)
    with pytest.raises(AuthorizationError):
        board.search_consultations("ana")
    assert len(fake_http.calls) == 1


def test_guardian_kpis_only_cover_own_invoices(parent_session, fake_http, respond, now, notices):
    rows = [
        {**SERVER_INVOICES[0], "parentId": 7},
        {**SERVER_INVOICES[1], "parentId": 8},
        {**SERVER_INVOICES[2], "userId": "7"},
    ]
    fake_http.queue(respond(body=rows))
    board = _board(parent_session, fake_http, now, notices)
    board.load()

    assert [inv.id for inv in board.visible] == [1, 4]
    kpis = board.kpis()
    assert kpis.outstanding_total == Decimal("100.00")
    assert kpis.overdue == ()


def test_available_actions_by_role(loaded_board, parent_session, fake_http, now, notices):
    overdue = loaded_board.find(3)
    paid = loaded_board.find(4)

    assert loaded_board.available_actions(overdue) == {
        InvoiceAction.DOWNLOAD,
        InvoiceAction.MARK_PAID,
        InvoiceAction.MARK_PENDING,
    }
    assert loaded_board.available_actions(paid) == {InvoiceAction.DOWNLOAD, InvoiceAction.MARK_PENDING}

    guardian = _board(parent_session, fake_http, now, notices)
    assert guardian.available_actions(overdue) == {InvoiceAction.DOWNLOAD, InvoiceAction.UPLOAD_PROOF}
    assert guardian.available_actions(paid) == {InvoiceAction.DOWNLOAD}


def test_guardian_uploads_proof(parent_session, fake_http, respond, now, notices, tmp_path):
    proof = tmp_path / "comprovativo.png"
    proof.write_bytes(b"\x89PNG")
    fake_http.queue(
        respond(body=SERVER_INVOICES),
        respond(body={**SERVER_INVOICES[1], "proofUrl": "/uploads/comprovativo.png"}),
    )
    board = _board(parent_session, fake_http, now, notices)
    board.load()

    result = board.upload_proof(3, proof)

    assert result.ok is True
    assert board.find(3).proof_url == "/uploads/comprovativo.png"
    assert board.find(3).status is InvoiceStatus.OVERDUE


def test_download_names_file_after_number(loaded_board, fake_http, respond, tmp_path):
    fake_http.queue(respond(content=b"%PDF"))

    path = loaded_board.download(loaded_board.find(3), tmp_path)

    assert path == tmp_path / "invoice_F-003.pdf"
    assert path.read_bytes() == b"%PDF"


def test_download_failure_is_reported(loaded_board, fake_http, respond, tmp_path, notices):
    fake_http.queue(respond(404))

    assert loaded_board.download(loaded_board.find(3), tmp_path) is None
    assert notices == [board_module.DOWNLOAD_FAILED]


def test_export_writes_filtered_rows(loaded_board, tmp_path):
    path = loaded_board.export_csv(tmp_path, InvoiceQuery(chip=StatusChip.OUTSTANDING))

    assert path.name == "faturas_2026-10-19.csv"
    lines = path.read_text(encoding="utf-8").splitlines()
    assert len(lines) == 3
    assert "F-001" in lines[1]
    assert "F-003" in lines[2]


def test_consultation_search_errors_yield_empty_list(loaded_board, fake_http, respond, notices):
    fake_http.queue(respond(500), respond(500))

    assert loaded_board.search_consultations("ana") == []
    assert notices == [board_module.CONSULTATIONS_FAILED]


def test_guardian_cannot_act_on_hidden_invoices(parent_session, fake_http, respond, now, notices, tmp_path):
    proof = tmp_path / "comprovativo.pdf"
    proof.write_bytes(b"%PDF")
    rows = [{**SERVER_INVOICES[0], "parentId": 7}, {**SERVER_INVOICES[1], "parentId": 8}]
    fake_http.queue(respond(body=rows))
    board = _board(parent_session, fake_http, now, notices)
    board.load()

    with pytest.raises(NotFoundError):
        board.upload_proof(3, proof)
    with pytest.raises(NotFoundError):
        board.download(board.find(3), tmp_path)

    assert len(fake_http.calls) == 1
    assert not (tmp_path / "invoice_F-003.pdf").exists()


def test_unreadable_proof_file_is_reported(parent_session, fake_http, respond, now, notices, tmp_path):
    fake_http.queue(respond(body=SERVER_INVOICES))
    board = _board(parent_session, fake_http, now, notices)
    board.load()
    before = board.invoices

    result = board.upload_proof(3, tmp_path / "missing.pdf")

    assert result.ok is False
    assert result.message == board_module.PROOF_FAILED
    assert notices == [board_module.PROOF_FAILED]
    assert board.invoices == before
    assert not board.is_working(3)
    assert len(fake_http.calls) == 1
