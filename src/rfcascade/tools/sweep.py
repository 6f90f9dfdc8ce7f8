from __future__ import annotations
from typing import Dict, Sequence
from pathlib import Path
import numpy as np
import matplotlib.pyplot as plt

from rfcascade.schema import CascadeConfig, Stage
from rfcascade.core.cascade import cascade_profile

SWEEP_FIELDS = ("gain_db", "noise_figure_db", "p1db_dbm", "ip3_dbm")

def sweep_stage_field(
    cfg: CascadeConfig,
    stage_index: int,
    field: str,
    grid: Sequence[float],
) -> Dict[str, np.ndarray]:
    """
    Barre un campo de una etapa y devuelve NF, IP3 y SFDR finales de la cadena (sin redondear).
    No modifica cfg.
    """
    if field not in SWEEP_FIELDS:
        raise ValueError(f"Campo no barrible: {field} (usa uno de {', '.join(SWEEP_FIELDS)})")
    stages = list(cfg.stages)
    if not -len(stages) <= stage_index < len(stages):
        raise IndexError(f"Etapa {stage_index} fuera de rango (hay {len(stages)})")

    grid = np.asarray(grid, dtype=float)
    nf = np.empty_like(grid)
    ip3 = np.empty_like(grid)
    sfdr = np.empty_like(grid)
    base = stages[stage_index]
    for k, v in enumerate(grid):
        stages[stage_index] = Stage.model_validate({**base.model_dump(), field: float(v)})
        last = cascade_profile(stages)[-1]
        nf[k] = last["nf_db"]
        ip3[k] = last["ip3_dbm"]
        sfdr[k] = last["sfdr_db"]
    return {"grid": grid, "nf_db": nf, "ip3_dbm": ip3, "sfdr_db": sfdr}

def save_sweep_png(sweep: Dict[str, np.ndarray], field: str, stage_name: str, out_png: str | Path) -> None:
    fig = plt.figure(figsize=(7, 4))
    ax1 = fig.add_subplot(111)
    ax1.plot(sweep["grid"], sweep["nf_db"], marker="o", label="NF final [dB]")
    ax1.plot(sweep["grid"], sweep["ip3_dbm"], marker="^", label="IP3 final [dBm]")
    ax1.set_xlabel(f"{stage_name}: {field}")
    ax1.set_ylabel("dB / dBm")
    ax1.grid(True, alpha=0.3)
    ax1.legend(loc="upper left")
    ax2 = ax1.twinx()
    ax2.plot(sweep["grid"], sweep["sfdr_db"], linestyle="--", color="tab:green", label="SFDR [dB]")
    ax2.set_ylabel("SFDR [dB]")
    ax2.legend(loc="lower right")
    fig.tight_layout()
    out_png = Path(out_png)
    out_png.parent.mkdir(parents=True, exist_ok=True)
    fig.savefig(out_png, dpi=140)
    plt.close(fig)
