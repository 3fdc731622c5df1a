"""
Stryktipset Pool - Main Dashboard
Create a room and share it with the group
"""

import streamlit as st
import pandas as pd

from config import DEFAULT_TARGET_COST, MATCHES_PER_ROUND
from main import get_pool, target_cost_hint
from src.pool.errors import PoolError
from src.pool.factorize import feasible_costs

# Page config
st.set_page_config(
    page_title="Stryktipset Pool",
    page_icon="⚽",
    layout="wide",
    initial_sidebar_state="expanded"
)

# Custom CSS
st.markdown("""
<style>
    .main-header {
        font-size: 3rem;
        font-weight: bold;
        text-align: center;
        color: #1f77b4;
        margin-bottom: 2rem;
    }
</style>
""", unsafe_allow_html=True)


@st.cache_data(ttl=60)
def load_current_draw():
    return get_pool().fetcher.get_current_draw()


pool = get_pool()

# Header
st.markdown('<h1 class="main-header">⚽ Stryktipset Pool</h1>', unsafe_allow_html=True)
st.markdown("### Pool your tips, play one ticket together")
st.markdown("---")

tab1, tab2 = st.tabs(["🆕 Create Room", "📋 Rooms"])

with tab1:
    draw = load_current_draw()

    if draw:
        st.success(f"Draw {draw['draw_number']} is open (week {draw['week_number']}, "
                   f"closes {draw['reg_close_time']})")
        default_matches = draw['matches']
    else:
        st.warning("⚠️ No open Stryktipset draw right now. Enter the matches by hand.")
        default_matches = [{'home': '', 'away': ''} for _ in range(MATCHES_PER_ROUND)]

    title = st.text_input("Room title", value=f"Week {draw['week_number']}" if draw else "")

    # Budget options up to 10 000 kr that a 13-match coupon can actually cost
    cost_options = [c['cost'] for c in feasible_costs(MATCHES_PER_ROUND, max_cost=10000)]
    target_cost = st.selectbox(
        "Target cost per ticket (kr)",
        cost_options,
        index=cost_options.index(DEFAULT_TARGET_COST),
    )
    st.caption(target_cost_hint(target_cost, len(default_matches)))

    matches_df = st.data_editor(
        pd.DataFrame([{'home': m['home'], 'away': m['away']} for m in default_matches]),
        num_rows="fixed" if draw else "dynamic",
        use_container_width=True,
        disabled=bool(draw),
    )

    if st.button("🚀 Create Room", type="primary", use_container_width=True):
        matches = [
            {**m, 'home': row['home'], 'away': row['away']}
            for m, (_, row) in zip(default_matches, matches_df.iterrows())
        ] if draw else matches_df.to_dict('records')

        try:
            room = pool.create_room(
                title, int(target_cost), matches,
                draw_number=draw['draw_number'] if draw else None,
            )
            st.success(f"✅ Room created! Room ID: `{room.id}`")
            st.info("Open the Room page and share the room ID with your group.")
        except PoolError as e:
            st.error(f"❌ {e.message}")

with tab2:
    rooms = pool.store.list_rooms()

    if not rooms:
        st.info("No rooms yet.")
    else:
        st.dataframe(
            pd.DataFrame([{
                'Room ID': r.id,
                'Title': r.title,
                'Target cost': f"{r.target_cost} kr",
                'Tickets': len(r.tickets),
                'Status': r.status,
                'Created': r.created_at.strftime('%Y-%m-%d %H:%M'),
            } for r in rooms]),
            use_container_width=True,
            hide_index=True,
        )

# Footer
st.markdown("---")
st.markdown(
    "<div style='text-align: center'><p>Made with ⚽ | Draw data from Svenska Spel</p></div>",
    unsafe_allow_html=True
)
