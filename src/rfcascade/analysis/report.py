from __future__ import annotations
from typing import Iterable, List, Optional, Sequence, Tuple
from datetime import datetime
from pathlib import Path
import logging

from ..schema import CascadeResult, Conversion, Stage
from ..core.errors import CascadeNotComputedError, NumericDomainError
from ..core.units import compute_conversion

logger = logging.getLogger(__name__)

TITLE = "RF Cascade Calculator - Resultados"
_LINES_PER_PAGE = 50

def _num(x: float) -> str:
    return f"{x:.10g}"

def format_watts(w: float, w_decimals: int = 6) -> str:
    """Elige W, mW o µW según la magnitud."""
    if w >= 1:
        return f"{w:.{w_decimals}f} W"
    if w >= 0.001:
        return f"{w*1e3:.3f} mW"
    return f"{w*1e6:.3f} µW"

def _conversion_line(conv: Conversion) -> Tuple[str, str]:
    err = ""
    try:
        res = compute_conversion(conv)
    except NumericDomainError as e:
        res = None
        err = str(e)

    if conv.kind == "db_to_dbm":
        label = "dB a dBm:"
        lhs = f"{_num(conv.db)} dB + {_num(conv.reference_dbm)} dBm"
        rhs = None if res is None else f"{res:.2f} dBm"
    elif conv.kind == "dbm_to_watts":
        label = "dBm a W:"
        lhs = f"{_num(conv.dbm)} dBm"
        rhs = None if res is None else format_watts(res)
    elif conv.kind == "watts_to_dbm":
        label = "W a dBm:"
        lhs = f"{_num(conv.watts)} W"
        rhs = None if res is None else f"{res:.2f} dBm"
    else:
        label = "W a dB:"
        lhs = f"{_num(conv.watts)} W / {_num(conv.reference_watts)} W"
        rhs = None if res is None else f"{res:.2f} dB"

    if rhs is None:
        return label, f"{lhs} = fuera de dominio ({err})"
    return label, f"{lhs} = {rhs}"

def _report_blocks(
    stages: Sequence[Stage],
    result: Optional[CascadeResult],
    conversions: Iterable[Conversion],
    now: Optional[datetime] = None,
) -> List[Tuple[str, str]]:
    """Pares (estilo, texto); estilo en {"title", "h1", "h2", "text"}."""
    if result is None:
        raise CascadeNotComputedError()
    now = now or datetime.now()
    out: List[Tuple[str, str]] = [
        ("title", TITLE),
        ("text", f"Generado: {now.strftime('%Y-%m-%d %H:%M:%S')}"),
        ("text", ""),
        ("h1", "Etapas de entrada"),
    ]

    head = f"{'#':<6}{'Nombre':<16}{'G (dB)':>10}{'NF (dB)':>10}{'P1dB (dBm)':>12}{'IP3 (dBm)':>12}"
    out.append(("h2", head))
    out.append(("text", "-" * len(head)))
    for i, s in enumerate(stages, start=1):
        out.append(("text", f"{i:<6}{s.name[:15]:<16}{_num(s.gain_db):>10}{_num(s.noise_figure_db):>10}"
                            f"{_num(s.p1db_dbm):>12}{_num(s.ip3_dbm):>12}"))
    out.append(("text", ""))

    out.append(("h1", "Resultados calculados"))
    for label, value in [
        ("Ganancia total:", f"{result.total_gain_db} dB"),
        ("NF en cascada:", f"{result.total_noise_figure_db} dB"),
        ("P1dB en cascada:", f"{result.total_p1db_dbm} dBm"),
        ("IP3 en cascada:", f"{result.total_ip3_dbm} dBm"),
        ("SFDR (pendiente 2/3):", f"{result.sfdr_db} dB"),
    ]:
        out.append(("text", f"{label:<24}{value}"))
    out.append(("text", ""))

    out.append(("h1", "Conversiones de potencia"))
    for conv in conversions:
        label, calc = _conversion_line(conv)
        out.append(("h2", label))
        out.append(("text", f"  {calc}"))
    out.append(("text", ""))

    out.append(("h1", "Detalle de cálculo"))
    gain_expr = " + ".join(f"Etapa {i}: {_num(s.gain_db)} dB" for i, s in enumerate(stages, start=1))
    out += [
        ("h2", "1. Ganancia total:"),
        ("text", f"  {gain_expr} = {result.total_gain_db} dB"),
        ("h2", "2. Figura de ruido en cascada (Friis):"),
        ("text", "  F_total = F1 + (F2-1)/G1 + (F3-1)/(G1*G2) + ..."),
        ("text", f"  Resultado: {result.total_noise_figure_db} dB"),
        ("h2", "3. P1dB en cascada:"),
        ("text", "  Mínimo de todas las etapas referidas a la entrada"),
        ("text", f"  Resultado: {result.total_p1db_dbm} dBm"),
        ("h2", "4. IP3 en cascada:"),
        ("text", "  1/IP3_total = 1/IP3_1 + 1/(IP3_2/G1) + ..."),
        ("text", f"  Resultado: {result.total_ip3_dbm} dBm"),
        ("h2", "5. SFDR:"),
        ("text", "  SFDR = (2/3) * (IP3 - NF - kTB)"),
        ("text", f"  SFDR = (2/3) * ({result.total_ip3_dbm} - {result.total_noise_figure_db} - (-174))"),
        ("text", f"  Resultado: {result.sfdr_db} dB"),
    ]
    return out

def build_report_lines(
    stages: Sequence[Stage],
    result: Optional[CascadeResult],
    conversions: Iterable[Conversion],
    now: Optional[datetime] = None,
) -> List[str]:
    return [txt for _, txt in _report_blocks(stages, result, conversions, now)]

def default_report_name(now: Optional[datetime] = None) -> str:
    return f"RF_Cascade_Results_{(now or datetime.now()).strftime('%Y-%m-%d')}.pdf"

def save_report_pdf(
    stages: Sequence[Stage],
    result: Optional[CascadeResult],
    conversions: Iterable[Conversion],
    out_pdf: Path,
    now: Optional[datetime] = None,
) -> Path:
    """Informe paginado en A4 con matplotlib. Falla si no hay resultado calculado."""
    blocks = _report_blocks(stages, result, conversions, now)

    import matplotlib.pyplot as plt
    from matplotlib.backends.backend_pdf import PdfPages

    styles = {
        "title": dict(fontsize=16, fontweight="bold", ha="center", x=0.5),
        "h1": dict(fontsize=12, fontweight="bold", ha="left", x=0.08),
        "h2": dict(fontsize=9, fontweight="bold", ha="left", x=0.08),
        "text": dict(fontsize=9, ha="left", x=0.08),
    }

    out_pdf = Path(out_pdf)
    out_pdf.parent.mkdir(parents=True, exist_ok=True)
    pages = [blocks[k:k + _LINES_PER_PAGE] for k in range(0, len(blocks), _LINES_PER_PAGE)]
    with PdfPages(out_pdf) as pdf:
        for page in pages:
            fig = plt.figure(figsize=(8.27, 11.69))  # A4
            y = 0.95
            for style, txt in page:
                kw = dict(styles[style])
                x = kw.pop("x")
                fig.text(x, y, txt, family="monospace", va="top", **kw)
                y -= 0.03 if style in ("title", "h1") else 0.015
            pdf.savefig(fig)
            plt.close(fig)
    logger.info("Informe escrito en %s (%d páginas)", out_pdf, len(pages))
    return out_pdf
