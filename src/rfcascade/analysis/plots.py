from __future__ import annotations
from typing import List, Dict, Any
from pathlib import Path
import matplotlib.pyplot as plt

def save_profile_png(profile: List[Dict[str, Any]], out_png: Path) -> None:
    """Ganancia, NF, P1dB e IP3 acumulados (referidos a la entrada) por etapa."""
    if not profile:
        return
    idx = [p["i"] + 1 for p in profile]
    names = [p["name"] for p in profile]

    fig = plt.figure(figsize=(9, 5))
    ax1 = fig.add_subplot(111)
    ax1.plot(idx, [p["gain_db"] for p in profile], marker="o", label="Ganancia [dB]")
    ax1.plot(idx, [p["p1db_dbm"] for p in profile], marker="s", label="P1dB entrada [dBm]")
    ax1.plot(idx, [p["ip3_dbm"] for p in profile], marker="^", label="IP3 entrada [dBm]")
    ax1.set_xticks(idx)
    ax1.set_xticklabels(names, rotation=30, ha="right")
    ax1.set_xlabel("Etapa")
    ax1.set_ylabel("dB / dBm")
    ax1.grid(True, alpha=0.3)
    ax1.legend(loc="upper left")
    # NF en eje propio, suele ser mucho menor que el resto
    ax2 = ax1.twinx()
    ax2.plot(idx, [p["nf_db"] for p in profile], linestyle="--", color="tab:red", label="NF [dB]")
    ax2.set_ylabel("NF [dB]")
    ax2.legend(loc="upper right")
    fig.tight_layout()
    out_png.parent.mkdir(parents=True, exist_ok=True)
    fig.savefig(out_png, dpi=140)
    plt.close(fig)

def save_profile_html(profile: List[Dict[str, Any]], out_html: Path) -> None:
    if not profile:
        return
    import plotly.graph_objs as go
    from plotly.offline import plot

    x = [f"{p['i'] + 1}. {p['name']}" for p in profile]
    traces = [
        go.Scatter(x=x, y=[p["gain_db"] for p in profile], mode="lines+markers", name="Ganancia [dB]"),
        go.Scatter(x=x, y=[p["p1db_dbm"] for p in profile], mode="lines+markers", name="P1dB entrada [dBm]"),
        go.Scatter(x=x, y=[p["ip3_dbm"] for p in profile], mode="lines+markers", name="IP3 entrada [dBm]"),
        go.Scatter(x=x, y=[p["nf_db"] for p in profile], mode="lines+markers", name="NF [dB]", yaxis="y2"),
    ]
    layout = go.Layout(
        title="Perfil de la cascada",
        xaxis=dict(title="Etapa"),
        yaxis=dict(title="dB / dBm"),
        yaxis2=dict(title="NF [dB]", overlaying="y", side="right"),
        legend=dict(orientation="h"),
        template="plotly_white",
    )
    fig = go.Figure(data=traces, layout=layout)
    out_html.parent.mkdir(parents=True, exist_ok=True)
    plot(fig, filename=str(out_html), auto_open=False, include_plotlyjs="cdn")
