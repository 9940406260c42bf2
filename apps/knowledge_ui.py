# apps/knowledge_ui.py
from __future__ import annotations

import os

import yaml
import streamlit as st

from skill_transfer.config.resolver import load_env, resolve_config
from skill_transfer.engine.manager import KnowledgeManager
from skill_transfer.errors import KnowledgeError
from skill_transfer.service.front import GetMotionSpecRequest, KnowledgeService


@st.cache_resource
def _start_service(params_file: str) -> KnowledgeService:
    cfg = resolve_config(params_file=params_file or None, environ=load_env())
    return KnowledgeManager(cfg).start()


st.set_page_config(page_title="Skill transfer knowledge", layout="wide")
st.title("Motion phase specs")

with st.sidebar:
    params_file = st.text_input("Parameter file (YAML)", value=os.environ.get("SKILL_TRANSFER_PARAMS_FILE", ""))
    if st.button("Reload documents"):
        _start_service.clear()

try:
    service = _start_service(params_file)
except KnowledgeError as e:
    st.error(f"Startup failed: {e}")
    if e.data:
        st.json(e.data)
    st.stop()

count = service.get_task_spec().motion_phase_count
st.caption(f"{count} motion phase(s)")

if count == 0:
    st.info("The task document declares no motion phases.")
    st.stop()

index = st.number_input("Phase index", min_value=0, max_value=count - 1, value=0, step=1)
resp = service.get_motion_spec(GetMotionSpecRequest(index=int(index)))

if not resp.ok:
    st.error(resp.error.message if resp.error else "Request failed.")
    if resp.error is not None:
        st.json(resp.error.to_dict())
else:
    left, right = st.columns([3, 1])
    with left:
        st.code(resp.spec, language="yaml")
    with right:
        st.subheader("Stop condition")
        st.code(yaml.safe_dump(resp.stop_condition.to_dict() if resp.stop_condition else {}, sort_keys=False), language="yaml")
