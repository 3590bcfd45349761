import pandas as pd
import streamlit as st

import auth
from infrastructure.repositories.activity_log_repository import AuditAction

def render_logs():
    st.write("### 🧾 Activity log")
    c1, c2 = st.columns([2, 1])
    action = c1.selectbox("Action", ["All"] + [a.value for a in AuditAction])
    limit = c2.number_input("Rows", min_value=10, max_value=1000, value=100, step=10)

    rows = auth.get_activity_log().get_logs(limit=int(limit), action_filter=action)
    if not rows:
        st.info("No activity recorded.")
        return

    df = pd.DataFrame(rows)
    cols = [c for c in ["ts", "action", "result", "actorRole", "actorUid", "targetType", "targetId", "metadata"] if c in df.columns]
    df = df[cols].rename(columns={
        "ts": "Time", "action": "Action", "result": "Result", "actorRole": "Role",
        "actorUid": "Actor", "targetType": "Target", "targetId": "Target id", "metadata": "Details",
    })
    if "Details" in df.columns:
        df["Details"] = df["Details"].map(lambda m: ", ".join(f"{k}={v}" for k, v in (m or {}).items()))
    st.dataframe(df, use_container_width=True, hide_index=True, height=500)
