"""
Room Page - submit tickets and reveal the final ticket
"""

import streamlit as st
import pandas as pd
import plotly.graph_objects as go
from datetime import datetime
from pathlib import Path
import sys
import uuid

# Add parent directory to path
sys.path.append(str(Path(__file__).parent.parent))

from config import OUTCOMES, OUTCOME_LABELS, LIVE_RESULTS_REFRESH_SECONDS, SVENSKA_SPEL_COUPON_URL
from main import get_pool
from src.pool.allocation import STATUS_READY, STATUS_NO_TICKETS, STATUS_CAPACITY_EXCEEDED
from src.pool.combinations import calculate_combinations, calculate_cost
from src.pool.coupon import coupon_dataframe, count_hits, format_coupon_text, ticket_rows
from src.pool.errors import PoolError
from src.pool.validation import check_ticket
from src.pool.votes import vote_percentages
from utils.utils import hash_client_id

st.set_page_config(page_title="Room", page_icon="🎫", layout="wide")


@st.cache_data(ttl=LIVE_RESULTS_REFRESH_SECONDS)
def load_live_results(draw_number: int):
    return get_pool().fetcher.get_draw_results(draw_number)


pool = get_pool()

# One identity per browser session
if 'client_id' not in st.session_state:
    st.session_state.client_id = uuid.uuid4().hex

st.title("🎫 Pool Room")

room_id = st.text_input("Room ID", value=st.query_params.get("room", ""))
if not room_id:
    st.info("Enter the room ID you got from the room creator.")
    st.stop()

try:
    # One snapshot for everything rendered below
    room = pool.get_room(room_id.strip())
except PoolError as e:
    st.error(f"❌ {e.message}")
    st.stop()

st.markdown(f"### {room.title}")
col1, col2, col3 = st.columns(3)
col1.metric("Target cost", f"{room.target_cost} kr")
col2.metric("Tickets", len(room.tickets))
col3.metric("Status", room.status.title())

tab1, tab2, tab3 = st.tabs(["📝 Submit Ticket", "📊 Votes", "🏆 Final Ticket"])

with tab1:
    client_hash = hash_client_id(st.session_state.client_id)
    already_submitted = any(t.client_id_hash == client_hash for t in room.tickets)

    if already_submitted:
        st.success("✅ You have already submitted a ticket for this room.")
    elif not room.is_open:
        st.warning("⚠️ This room is no longer accepting tickets.")
    else:
        player_name = st.text_input("Your name")

        selections = []
        for i, match in enumerate(room.matches, 1):
            col1, col2 = st.columns([3, 2])
            with col1:
                st.markdown(f"**{i}. {match.title}**")
            with col2:
                picked = st.multiselect(
                    f"Match {i}",
                    options=list(OUTCOMES),
                    key=f"sel_{room.id}_{match.id}",
                    label_visibility="collapsed",
                )
            selections.append(picked)

        cost = calculate_cost(calculate_combinations(selections))
        progress = min(cost / room.target_cost, 1.0) if room.target_cost else 0.0
        st.progress(progress, text=f"{cost} kr / {room.target_cost} kr")

        problem = check_ticket(selections, len(room.matches), cost, room.target_cost)
        if problem:
            st.caption(f"⚠️ {problem.message}")

        if st.button("📨 Submit Ticket", type="primary", disabled=problem is not None,
                     use_container_width=True):
            try:
                pool.submit_ticket(room.id, player_name, selections, st.session_state.client_id)
                st.success("✅ Ticket submitted!")
                st.rerun()
            except PoolError as e:
                st.error(f"❌ {e.message}")

    if room.tickets:
        st.markdown("---")
        st.subheader("Submitted Tickets")
        st.dataframe(pd.DataFrame(ticket_rows(room)), use_container_width=True, hide_index=True)

with tab2:
    if not room.tickets:
        st.info("No votes yet.")
    else:
        percentages = vote_percentages(room.matches, room.tickets)
        labels = [f"{i}. {m.title}" for i, m in enumerate(room.matches, 1)]

        fig = go.Figure()
        for outcome in OUTCOMES:
            fig.add_trace(go.Bar(
                name=f"{outcome} ({OUTCOME_LABELS[outcome]})",
                y=labels,
                x=[percentages[m.id][outcome] for m in room.matches],
                orientation='h',
            ))
        fig.update_layout(
            barmode='group',
            xaxis_title="Share of tickets (%)",
            yaxis=dict(autorange="reversed"),
            height=60 * len(room.matches) + 100,
        )
        st.plotly_chart(fig, use_container_width=True)

        st.dataframe(pool.vote_table(room), use_container_width=True, hide_index=True)

with tab3:
    result = pool.final_ticket_for(room)

    if result.status == STATUS_NO_TICKETS:
        st.info("No tickets yet. The final ticket appears once someone has submitted.")
    elif result.ticket is None:
        st.error(f"❌ {result.error.message}")
    else:
        if result.status == STATUS_CAPACITY_EXCEEDED:
            st.error(f"❌ {result.error.message}")

        df = coupon_dataframe(room, result.ticket.selections)
        st.dataframe(df, use_container_width=True, hide_index=True)

        col1, col2, col3 = st.columns(3)
        col1.metric("💰 Cost", f"{result.ticket.cost} kr")
        col2.metric("🎲 Rows", result.ticket.combinations)
        col3.metric("👥 Players", len(room.tickets))

        hits = None
        if room.draw_number:
            hits = count_hits(room.matches, result.ticket.selections,
                              load_live_results(room.draw_number))
        if hits and hits['decided']:
            st.metric("📡 Live", f"{hits['hits']} / {hits['decided']} right")

        col1, col2 = st.columns(2)
        with col1:
            st.download_button(
                label="💾 Download as Text",
                data=format_coupon_text(room, result),
                file_name=f"stryktipset_{room.id}_{datetime.now().strftime('%Y%m%d_%H%M')}.txt",
                mime="text/plain",
                use_container_width=True
            )
        with col2:
            st.download_button(
                label="📊 Download as CSV",
                data=df.to_csv(index=False),
                file_name=f"stryktipset_{room.id}_{datetime.now().strftime('%Y%m%d_%H%M')}.csv",
                mime="text/csv",
                use_container_width=True
            )

        if result.status == STATUS_READY:
            st.link_button("🚀 Play it at Svenska Spel", SVENSKA_SPEL_COUPON_URL,
                           use_container_width=True)
