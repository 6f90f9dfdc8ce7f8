from __future__ import annotations
from collections import deque
from typing import Any, Dict, Iterator, List, Optional, Sequence
import logging, math

from ..schema import CascadeResult, Stage
from .errors import NumericDomainError
from .units import lin_to_dB
from .utils import round2

logger = logging.getLogger(__name__)

# kTB a temperatura ambiente, 1 Hz (dBm/Hz)
KTB_DBM_HZ = -174.0

def sfdr_db(ip3_dbm: float, nf_db: float) -> float:
    """SFDR con la regla de pendiente 2/3, sin redondear."""
    return (ip3_dbm - nf_db - KTB_DBM_HZ) * 2.0 / 3.0

def _lin(x_dB: float) -> float:
    """dB -> lineal; satura a inf si desborda."""
    try:
        return 10.0**(x_dB/10.0)
    except OverflowError:
        return math.inf

def _accumulate(stages: Sequence[Stage]) -> Iterator[Dict[str, Any]]:
    """
    Recorre la cadena en orden y entrega el estado acumulado tras cada etapa.
    - Ganancia: suma en dB.
    - NF: Friis, con G_cum = ganancia lineal de las etapas estrictamente anteriores.
    - P1dB / IP3: referidos a la entrada restando la ganancia previa acumulada.
    IP3 se combina como 1/sum(1/IP3_k) escalado por el mínimo (ip3_min, ip3_sum),
    así un IP3 enorme aporta 0 y nunca desborda.
    """
    first = stages[0]
    gain_db = first.gain_db
    p1db = first.p1db_dbm
    ip3_min, ip3_sum = first.ip3_dbm, 1.0
    F_tot = None

    nf_db = first.noise_figure_db
    ip3_db = first.ip3_dbm
    yield _state(0, first, gain_db, nf_db, p1db, ip3_db)

    for i in range(1, len(stages)):
        blk = stages[i]
        # ganancia de las etapas 0..i-1
        prev_gain_db = gain_db

        G_cum = _lin(prev_gain_db)
        if G_cum <= 0.0:
            raise NumericDomainError(f"Ganancia lineal acumulada nula antes de la etapa {i+1}")
        if F_tot is None:
            F_tot = _lin(first.noise_figure_db)
        F_i = _lin(blk.noise_figure_db)
        if math.isinf(F_i):
            # (F_i - 1)/G_cum ~ F_i/G_cum, en dB para no hacer inf/inf
            F_tot += _lin(blk.noise_figure_db - prev_gain_db)
        else:
            F_tot += (F_i - 1.0) / G_cum

        p1db = min(p1db, blk.p1db_dbm - prev_gain_db)

        ref_ip3 = blk.ip3_dbm - prev_gain_db
        if ref_ip3 >= ip3_min:
            ip3_sum += 1.0 / _lin(ref_ip3 - ip3_min)
        else:
            ip3_sum = ip3_sum / _lin(ip3_min - ref_ip3) + 1.0
            ip3_min = ref_ip3

        gain_db += blk.gain_db
        if math.isinf(F_tot):
            raise NumericDomainError(f"Factor de ruido acumulado fuera de rango en la etapa {i+1}")
        nf_db = lin_to_dB(F_tot)
        ip3_db = ip3_min - 10.0*math.log10(ip3_sum)
        logger.debug("etapa %d (%s): G=%.3f dB NF=%.3f dB P1dB=%.3f dBm IP3=%.3f dBm",
                     i + 1, blk.name, gain_db, nf_db, p1db, ip3_db)
        yield _state(i, blk, gain_db, nf_db, p1db, ip3_db)

def _state(i: int, blk: Stage, gain_db: float, nf_db: float, p1db: float, ip3_db: float) -> Dict[str, Any]:
    return {
        "i": i, "name": blk.name,
        "gain_db": gain_db, "nf_db": nf_db,
        "p1db_dbm": p1db, "ip3_dbm": ip3_db,
        "sfdr_db": sfdr_db(ip3_db, nf_db),
    }

def cascade_profile(stages: Sequence[Stage]) -> List[Dict[str, Any]]:
    """Métricas acumuladas (sin redondear) de la subcadena 1..i para cada etapa i."""
    if not stages:
        return []
    return list(_accumulate(stages))

def compute_cascade(stages: Sequence[Stage]) -> Optional[CascadeResult]:
    """
    Métricas de extremo a extremo de la cadena.
    Devuelve None si no hay etapas; el llamador conserva su resultado anterior.
    """
    if not stages:
        logger.debug("cadena vacía, sin resultado")
        return None

    last = deque(_accumulate(stages), maxlen=1)[0]

    return CascadeResult(
        total_gain_db=round2(last["gain_db"]),
        total_noise_figure_db=round2(last["nf_db"]),
        total_p1db_dbm=round2(last["p1db_dbm"]),
        total_ip3_dbm=round2(last["ip3_dbm"]),
        sfdr_db=round2(last["sfdr_db"]),
    )
