"""
Streamlit simulation console: a virtual wearable and the live console running in one process.
"""

from __future__ import annotations

import time

import pandas as pd
import streamlit as st

import config
from backend.console import TelemetryConsole
from main import DeviceController
from sensor_simulator import VirtualSensorSimulator
from telemetry_envelope import TelemetryEnvelope
from telemetry_publisher import CallbackTransport, TelemetryPublisher

PAGE_TITLE = "Wearable Safety Monitor"
REFRESH_MS = 1000
STATUS_COLORS = {
    "NORMAL": "#12b981",
    "WARNING": "#facc15",
    "EMERGENCY": "#ef4444",
    "SOS": "#c026d3",
    "OFFLINE": "#9ca3af",
}


def init_state():
    if "console" not in st.session_state:
        st.session_state.console = TelemetryConsole()
    if "link_up" not in st.session_state:
        st.session_state.link_up = True
    if "controller" not in st.session_state:
        console = st.session_state.console
        simulator = VirtualSensorSimulator(config.DEVICE_ID)
        transport = CallbackTransport(
            lambda payload: console.accept(TelemetryEnvelope.from_wire(payload)),
            link_up=lambda: st.session_state.link_up,
        )
        publisher = TelemetryPublisher(config.DEVICE_ID, transport)
        st.session_state.controller = DeviceController(config.DEVICE_ID, simulator, publisher)


def status_badge(status: str) -> str:
    color = STATUS_COLORS.get(status, "#9ca3af")
    return f"""
    <div style="padding:8px 12px;border-radius:8px;background:{color};color:black;font-weight:700;">
        {status}
    </div>
    """


def render_analytics(detail: dict):
    analytics = detail["analytics"]
    temps = analytics["temperature"]
    col1, col2, col3, col4 = st.columns(4)
    col1.metric("Min Temp (°C)", f"{temps['min']:.1f}")
    col2.metric("Avg Temp (°C)", f"{temps['avg']:.1f}")
    col3.metric("Max Temp (°C)", f"{temps['max']:.1f}")
    col4.metric("Active", f"{analytics['moving_pct']:.0f}%")
    if analytics["temperature_history"]:
        st.line_chart(pd.DataFrame({"temperature": analytics["temperature_history"]}))
    st.bar_chart(pd.Series(analytics["state_breakdown"], name="% of readings"))
    if detail["trail"]:
        st.map(pd.DataFrame(detail["trail"], columns=["lat", "lon"]))


def main():
    st.set_page_config(page_title=PAGE_TITLE, page_icon="🦺", layout="wide")
    init_state()
    controller = st.session_state.controller
    console = st.session_state.console
    st.title(PAGE_TITLE)

    st.sidebar.header("Wearer")
    controller.adapter.scenario = st.sidebar.selectbox("Scenario", ["walking", "resting", "collapsed", "heat"])
    if st.sidebar.button("Press & release SOS"):
        controller.adapter.release_button()
    st.session_state.link_up = st.sidebar.checkbox("Uplink connected", value=st.session_state.link_up)
    auto_refresh = st.sidebar.checkbox("Auto-refresh every second", value=True)

    now = time.time()
    resolution = controller.tick(now)
    console.tick(now)

    st.caption(f"Device resolves {resolution.state.name} ({resolution.cause or 'no cause'})")
    detail = console.snapshot(controller.device_id, now, detail=True)
    if detail is None:
        st.info("Waiting for first telemetry...")
    else:
        st.markdown(status_badge(detail["status"]), unsafe_allow_html=True)
        st.json(detail["sensors"])
        render_analytics(detail)

    if controller.pending_tone:
        st.audio(controller.pending_tone, format="audio/wav")

    with st.expander("Alert Log"):
        for entry in console.alerts():
            st.warning(f"{time.strftime('%H:%M:%S', time.localtime(entry.received_at))} | {entry.state.name} | {entry.message}")

    if auto_refresh:
        time.sleep(REFRESH_MS / 1000)
        st.rerun()


if __name__ == "__main__":
    main()
