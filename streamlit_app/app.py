from __future__ import annotations

from datetime import date, datetime

import altair as alt
import pandas as pd
import streamlit as st
from pydantic import ValidationError

from martelinho.auth import AuthClient, AuthError
from martelinho.config import get_settings
from martelinho.db import SERVICES_COLLECTION, USERS_COLLECTION, connect
from martelinho.finance.periods import available_months
from martelinho.finance.summary import DashboardReport, build_dashboard_report
from martelinho.finance.tracker import ReportRequestTracker
from martelinho.formatters import (
    format_currency,
    format_date,
    format_growth,
    format_phone,
    format_repaired_parts,
    capitalize_part,
)
from martelinho.invoice.build import Invoice, invoice_filename, service_to_invoice
from martelinho.invoice.pdf import build_invoice_pdf
from martelinho.logging_config import configure_logging
from martelinho.models import REPAIRED_PARTS, ServiceDraft, ServiceRecord
from martelinho.services.repository import (
    ServiceNotFoundError,
    ServiceRepository,
    StorageUnavailableError,
    search_services,
)

# =====================================================
# Page config
# =====================================================
st.set_page_config(page_title="Martelinho de Ouro", layout="wide")

settings = get_settings()
configure_logging(settings.log_path)

# =====================================================
# MongoDB connection
# =====================================================
@st.cache_resource
def _database():
    """Connect once per server process and fail fast if MongoDB is unreachable."""
    db = connect(settings)
    db.client.admin.command("ping")
    return db


try:
    db = _database()
except Exception as exc:  # pragma: no cover - runtime failure handling
    st.error(f"Não foi possível conectar ao banco de dados: {exc}")
    st.stop()

repo = ServiceRepository(db[SERVICES_COLLECTION])

# =====================================================
# Session state
# =====================================================
def _on_auth_change(event: str, session) -> None:
    # a new user must never see a report computed for the previous one
    st.session_state["tracker"].cancel()
    st.session_state.pop("editing_id", None)


if "auth" not in st.session_state:
    st.session_state["tracker"] = ReportRequestTracker[DashboardReport]()
    auth = AuthClient(db[USERS_COLLECTION])
    auth.on_auth_state_change(_on_auth_change)
    st.session_state["auth"] = auth

auth: AuthClient = st.session_state["auth"]
tracker: ReportRequestTracker[DashboardReport] = st.session_state["tracker"]


def today() -> date:
    return datetime.now(settings.tzinfo).date()


@st.cache_data(show_spinner=False, max_entries=128)
def _invoice_pdf(service_id: str, updated_at: datetime, _invoice: Invoice) -> bytes:
    """Render an invoice once per service revision."""
    return build_invoice_pdf(_invoice)


# =====================================================
# SECTION 0 — AUTHENTICATION
# =====================================================
def render_auth() -> None:
    st.title("🔨 Martelinho de Ouro")
    tab_login, tab_register = st.tabs(["Entrar", "Criar conta"])

    with tab_login:
        with st.form("login"):
            email = st.text_input("Email")
            password = st.text_input("Senha", type="password")
            if st.form_submit_button("Entrar"):
                try:
                    auth.sign_in(email, password)
                    st.rerun()
                except AuthError as exc:
                    st.error(str(exc))

    with tab_register:
        with st.form("register"):
            full_name = st.text_input("Nome completo *")
            company_name = st.text_input("Nome da empresa *")
            email = st.text_input("Email *")
            phone = st.text_input("Telefone", placeholder="(11) 91234-5678")
            password = st.text_input("Senha *", type="password")
            if st.form_submit_button("Criar conta"):
                try:
                    auth.sign_up(email, password, full_name, company_name, format_phone(phone))
                    st.success("Conta criada com sucesso!")
                    st.rerun()
                except AuthError as exc:
                    st.error(str(exc))


# =====================================================
# SECTION 1 — SERVICES
# =====================================================
def render_service_form(tenant_id: str, record: ServiceRecord | None) -> None:
    title = "Editar Serviço" if record else "Novo Serviço"
    with st.form("service_form", clear_on_submit=record is None):
        st.subheader(title)
        client_name = st.text_input("Nome do Cliente", value=record.client_name if record else "")
        c1, c2 = st.columns(2)
        service_date = c1.date_input(
            "Data do Serviço",
            value=record.service_date if record else today(),
            format="DD/MM/YYYY",
        )
        service_value = c2.number_input(
            "Valor do Serviço", min_value=0.0, step=0.01,
            value=float(record.service_value) if record else 0.0,
        )
        c3, c4 = st.columns(2)
        car_plate = c3.text_input("Placa do Carro", value=record.car_plate if record else "")
        car_model = c4.text_input("Modelo do Carro", value=record.car_model if record else "")
        parts = st.multiselect(
            "Peças Reparadas (selecione uma ou mais)",
            REPAIRED_PARTS,
            default=record.repaired_parts if record else [REPAIRED_PARTS[0]],
            format_func=capitalize_part,
        )
        notes = st.text_area("Observações", value=(record.notes or "") if record else "")

        submitted = st.form_submit_button("Atualizar" if record else "Cadastrar")
        cancelled = record is not None and st.form_submit_button("Cancelar")

    if cancelled:
        st.session_state.pop("editing_id", None)
        st.rerun()
    if not submitted:
        return
    if not parts:
        st.error("Selecione pelo menos uma peça reparada")
        return

    try:
        draft = ServiceDraft(
            client_name=client_name,
            service_date=service_date,
            car_plate=car_plate,
            car_model=car_model,
            service_value=service_value,
            repaired_parts=parts,
            notes=notes,
        )
    except ValidationError:
        st.error("Preencha todos os campos obrigatórios.")
        return

    try:
        if record:
            repo.update_service(tenant_id, record.id, draft)
            st.session_state.pop("editing_id", None)
            st.toast("Serviço atualizado com sucesso!")
        else:
            repo.create_service(tenant_id, draft)
            st.toast("Serviço cadastrado com sucesso!")
        st.rerun()
    except (StorageUnavailableError, ServiceNotFoundError):
        st.error("Erro ao salvar o serviço")


def render_services(tenant_id: str) -> None:
    st.header("🧾 Gerenciamento de Serviços")

    try:
        services = repo.list_services(tenant_id)
    except StorageUnavailableError:
        st.error("Erro ao carregar os serviços")
        return

    editing_id = st.session_state.get("editing_id")
    editing = next((s for s in services if s.id == editing_id), None)
    if editing is not None:
        render_service_form(tenant_id, editing)
        return

    with st.expander("➕ Novo Serviço"):
        render_service_form(tenant_id, None)

    term = st.text_input("🔍 Buscar por cliente ou placa...")
    filtered = search_services(services, term)
    if term:
        st.caption(f"{len(filtered)} resultado(s) encontrado(s)")

    if not filtered:
        st.info("Nenhum resultado encontrado" if term else "Nenhum serviço cadastrado")
        return

    df = pd.DataFrame([
        {
            "Cliente": s.client_name,
            "Data": format_date(s.service_date),
            "Carro": f"{s.car_model} - {s.car_plate}",
            "Valor": format_currency(s.service_value),
            "Peças Reparadas": format_repaired_parts(s.repaired_parts),
        }
        for s in filtered
    ])
    st.dataframe(df, width="stretch", hide_index=True)

    labels = {
        s.id: f"{format_date(s.service_date)} · {s.client_name} · {s.car_plate}"
        for s in filtered
    }
    selected_id = st.selectbox("Serviço", list(labels), format_func=labels.__getitem__)
    selected = next(s for s in filtered if s.id == selected_id)

    c1, c2, c3 = st.columns(3)
    invoice = service_to_invoice(selected)
    c1.download_button(
        "📄 Gerar Nota Fiscal",
        data=_invoice_pdf(selected.id, selected.updated_at, invoice),
        file_name=invoice_filename(invoice),
        mime="application/pdf",
    )
    if c2.button("✏️ Editar"):
        st.session_state["editing_id"] = selected.id
        st.rerun()
    confirm = c3.checkbox("Confirmo a exclusão deste serviço")
    if c3.button("🗑️ Excluir", disabled=not confirm):
        try:
            repo.delete_service(tenant_id, selected.id)
            st.toast("Serviço excluído com sucesso!")
            st.rerun()
        except (StorageUnavailableError, ServiceNotFoundError):
            st.error("Erro ao excluir o serviço")


# =====================================================
# SECTION 2 — FINANCIAL DASHBOARD
# =====================================================
def render_dashboard(tenant_id: str) -> None:
    st.header("📊 Dashboard Financeiro")

    months = available_months(today())
    selected_month = st.selectbox(
        "Mês",
        [m for m, _ in months],
        format_func=dict(months).__getitem__,
    )

    generation = tracker.begin()
    try:
        report = build_dashboard_report(
            repo, tenant_id, today(), generation, selected_month=selected_month
        )
    except StorageUnavailableError:
        tracker.cancel()
        st.error("Não foi possível carregar os dados financeiros. Tente novamente mais tarde.")
        return

    if not tracker.apply(generation, report):
        return
    report = tracker.result

    cols = st.columns(3)
    for col, summary in zip(cols, report.current[:3]):
        with col:
            st.metric(summary.period, format_currency(summary.total))
            st.caption(f"{summary.count} serviço(s)")

    st.subheader("Resumo de Faturamento")
    st.dataframe(
        pd.DataFrame([
            {
                "Período": s.period,
                "Qtd. Serviços": s.count,
                "Valor Total": format_currency(s.total),
                "Média por Serviço": format_currency(s.average),
            }
            for s in report.current
        ]),
        width="stretch",
        hide_index=True,
    )

    st.subheader("Últimos meses")
    df_months = pd.DataFrame([
        {
            "Mês": s.period,
            "order": i,
            "total": s.total,
            "Serviços": s.count,
            "Crescimento": format_growth(g),
        }
        for i, (s, g) in enumerate(zip(report.monthly, report.growth))
    ])
    if not df_months.empty:
        chart = (
            alt.Chart(df_months)
            .mark_bar()
            .encode(
                x=alt.X("Mês:N", sort=alt.SortField("order", order="descending"), title=None),
                y=alt.Y("total:Q", title="Faturamento (R$)"),
                tooltip=["Mês:N", "total:Q", "Serviços:Q", "Crescimento:N"],
            )
            .properties(height=300)
        )
        st.altair_chart(chart, width="stretch")
        st.dataframe(
            df_months.drop(columns=["order"]).assign(total=df_months["total"].map(format_currency)),
            width="stretch",
            hide_index=True,
        )

    detail = report.selected
    if detail is not None:
        st.subheader(f"Serviços de {detail.month.label}")
        c1, c2, c3 = st.columns(3)
        c1.metric("Total", format_currency(detail.total))
        c2.metric("Média por Serviço", format_currency(detail.average))
        c3.metric("Serviços", detail.count)
        if detail.skipped:
            st.caption(f"{detail.skipped} serviço(s) com dados incompletos não listado(s) abaixo.")
        if detail.records:
            st.dataframe(
                pd.DataFrame([
                    {
                        "Data": format_date(r.service_date),
                        "Cliente": r.client_name,
                        "Carro": f"{r.car_model} - {r.car_plate}",
                        "Peças": format_repaired_parts(r.repaired_parts),
                        "Valor": format_currency(r.service_value),
                    }
                    for r in detail.records
                ]),
                width="stretch",
                hide_index=True,
            )
        else:
            st.info("Nenhum serviço neste mês.")


# =====================================================
# Layout
# =====================================================
session = auth.get_session()
if session is None:
    render_auth()
    st.stop()

with st.sidebar:
    st.write(f"**{session.user.company_name}**")
    st.caption(session.user.email)
    page = st.radio("Menu", ["Serviços", "Dashboard Financeiro"])
    if st.button("Sair"):
        auth.sign_out()
        st.rerun()

if page == "Serviços":
    render_services(session.tenant_id)
else:
    render_dashboard(session.tenant_id)

st.caption("Martelinho de Ouro • MongoDB • Dask • Streamlit")
