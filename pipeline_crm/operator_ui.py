"""Streamlit operator UI: dashboard, prospect list and pipeline board.

Run with ``streamlit run pipeline_crm/operator_ui.py``.
"""

from __future__ import annotations

import streamlit as st

from pipeline_crm.core.config import get_config
from pipeline_crm.core.enums import FILTER_ALL, STAGES, TEMPERATURE_VALUES, Commitment, stage_label
from pipeline_crm.core.exceptions import PartialWriteError, PipelineCRMError
from pipeline_crm.core.startup import bootstrap
from pipeline_crm.orchestration.command_bus import OpenProspectForm, ProspectSaved
from pipeline_crm.orchestration.prospect_controller import ProspectController
from pipeline_crm.services.board_service import BoardState, BoardSynchronizer
from pipeline_crm.services.list_view import ProspectFilters
from pipeline_crm.services.prospect_service import ProspectService

TEMPERATURE_ICONS = {"hot": "🔥", "warm": "🌤️", "cold": "❄️"}


@st.cache_resource
def _bootstrap_once() -> bool:
    bootstrap()
    return True


def _controller(service: ProspectService) -> ProspectController:
    controller = ProspectController(service)

    def open_form(command: OpenProspectForm) -> None:
        st.session_state["form_prospect_id"] = command.prospect_id
        st.session_state["form_open"] = True

    def on_saved(command: ProspectSaved) -> None:
        if command.warning:
            st.warning(command.warning)
        st.session_state["form_open"] = False

    controller.bus.subscribe(OpenProspectForm, open_form)
    controller.bus.subscribe(ProspectSaved, on_saved)
    return controller


def render_dashboard(controller: ProspectController) -> None:
    cfg = get_config()
    summary = controller.service.dashboard_summary()
    cols = st.columns(4)
    cols[0].metric("Active prospects", summary.active_count)
    cols[1].metric("Actions this week", summary.actions_this_week)
    cols[2].metric("Pipeline value", f"{summary.pipeline_value:,.2f} {cfg.CURRENCY}")
    cols[3].metric("Hot prospects", summary.hot_count)

    left, right = st.columns(2)
    with left:
        st.subheader("Upcoming actions")
        if not summary.upcoming_actions:
            st.caption("No upcoming actions scheduled")
        for prospect in summary.upcoming_actions:
            st.write(f"**{prospect.name}** · {prospect.next_action or '-'} · {prospect.next_action_date:%d %b}")
    with right:
        st.subheader("Stage distribution")
        for share in summary.stage_distribution:
            st.write(f"{share.label}: {share.count}")
            st.progress(min(int(share.percentage), 100))


def render_form(controller: ProspectController) -> None:
    prospect_id = st.session_state.get("form_prospect_id")
    current = controller.service.get_prospect(prospect_id) if prospect_id else None
    stage_values = [info.stage for info in STAGES]
    commitment_values = [""] + [item.value for item in Commitment]

    with st.form("prospect_form"):
        st.subheader("Edit prospect" if current else "New prospect")
        payload = {
            "name": st.text_input("Name *", value=current.name if current else ""),
            "company": st.text_input("Company", value=(current.company or "") if current else ""),
            "email": st.text_input("Email", value=(current.email or "") if current else ""),
            "phone": st.text_input("Phone", value=(current.phone or "") if current else ""),
            "source": st.text_input("Source", value=(current.source or "") if current else ""),
            "product_interest": st.text_input(
                "Product of interest", value=(current.product_interest or "") if current else ""
            ),
            "stage": st.selectbox(
                "Stage",
                stage_values,
                index=stage_values.index(current.stage) if current and current.stage in stage_values else 0,
                format_func=stage_label,
            ),
            "temperature": st.selectbox(
                "Temperature",
                list(TEMPERATURE_VALUES),
                index=list(TEMPERATURE_VALUES).index(current.temperature) if current else 1,
            ),
            "commitment": st.selectbox(
                "Commitment",
                commitment_values,
                index=commitment_values.index(current.commitment or "") if current else 0,
            ),
            "estimated_amount": st.text_input(
                "Estimated amount",
                value=str(current.estimated_amount) if current and current.estimated_amount is not None else "",
            ),
            "next_action": st.text_input("Next action", value=(current.next_action or "") if current else ""),
            "next_action_date": st.date_input(
                "Next action date", value=current.next_action_date if current else None
            ),
            "notes": st.text_area("Notes", value=(current.notes or "") if current else "", height=150),
        }
        submitted = st.form_submit_button("Update" if current else "Create")

    if not submitted:
        return
    try:
        if current:
            controller.update_prospect(current.id, payload)
        else:
            controller.create_prospect(payload)
        st.success("Prospect saved")
    except PartialWriteError:
        # Reported through the ProspectSaved warning.
        pass
    except PipelineCRMError as exc:
        st.error(str(exc))


def render_prospects(controller: ProspectController) -> None:
    search_col, stage_col, temp_col, new_col = st.columns([3, 2, 2, 1])
    search = search_col.text_input("Search by name, company or email")
    stage = stage_col.selectbox(
        "Stage",
        [FILTER_ALL] + [info.stage for info in STAGES],
        format_func=lambda value: "All" if value == FILTER_ALL else stage_label(value),
    )
    temperature = temp_col.selectbox("Temperature", [FILTER_ALL] + list(TEMPERATURE_VALUES))
    if new_col.button("New"):
        controller.request_new_prospect()

    result = controller.service.list_prospects(ProspectFilters(stage=stage, temperature=temperature, search=search))
    if result.offer_create_prospect:
        st.info("No prospects found")
        if result.store_is_empty and st.button("Create first prospect"):
            controller.request_new_prospect()

    for prospect in result.items:
        icon = TEMPERATURE_ICONS.get(prospect.temperature, "")
        with st.expander(f"{icon} {prospect.name} · {stage_label(prospect.stage)}"):
            st.write(f"Company: {prospect.company or '-'} · Email: {prospect.email or '-'}")
            actions = st.columns(3)
            try:
                if actions[0].button("Edit", key=f"edit_{prospect.id}"):
                    controller.request_edit(prospect.id)
                if actions[1].button("Mark as paid", key=f"paid_{prospect.id}"):
                    controller.mark_paid(prospect.id)
                if actions[2].button("Mark as lost", key=f"lost_{prospect.id}"):
                    controller.mark_lost(prospect.id, "Not specified")
            except PartialWriteError:
                # Reported through the ProspectSaved warning.
                pass
            except PipelineCRMError as exc:
                st.error(str(exc))
            for entry in controller.service.get_history(prospect.id):
                st.caption(
                    f"{entry.created_at:%Y-%m-%d %H:%M} · {entry.field_changed}: "
                    f"{entry.previous_value or '∅'} → {entry.new_value or '∅'}"
                )

    if st.session_state.get("form_open"):
        render_form(controller)


def render_board(controller: ProspectController) -> None:
    board = BoardState(controller.service.list_all())
    synchronizer = BoardSynchronizer(controller, board)
    stage_values = [info.stage for info in STAGES]
    columns = board.columns()
    for container, column in zip(st.columns(len(columns)), columns):
        with container:
            st.markdown(
                f"<span style='color:{column.color}'>●</span> **{column.label}** ({column.count})",
                unsafe_allow_html=True,
            )
            for prospect in column.prospects:
                st.write(f"{prospect.name} {TEMPERATURE_ICONS.get(prospect.temperature, '')}")
                target = st.selectbox(
                    "Move to",
                    stage_values,
                    index=stage_values.index(column.stage) if column.stage in stage_values else 0,
                    format_func=stage_label,
                    key=f"move_{prospect.id}",
                    label_visibility="collapsed",
                )
                move = synchronizer.drop(prospect.id, target)
                if move is None or not move.settled:
                    continue
                if move.error is not None:
                    st.error(str(move.error))
                else:
                    st.rerun()


def main() -> None:
    st.set_page_config(page_title="Pipeline CRM", layout="wide")
    _bootstrap_once()

    st.title("Pipeline CRM")
    with ProspectService() as service:
        controller = _controller(service)
        dashboard_tab, prospects_tab, board_tab = st.tabs(["Dashboard", "Prospects", "Pipeline"])
        with dashboard_tab:
            render_dashboard(controller)
        with prospects_tab:
            render_prospects(controller)
        with board_tab:
            render_board(controller)


main()
