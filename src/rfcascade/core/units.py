from __future__ import annotations
from typing import Callable, Dict
import math

from .utils import require_finite, require_positive
from .errors import NumericDomainError

# dB -> lineal / lineal -> dB (potencia)

def dB_to_lin(x_dB: float) -> float:
    try:
        return 10.0**(x_dB/10.0)
    except OverflowError as exc:
        raise NumericDomainError(f"{x_dB} dB desborda al pasar a lineal") from exc

def lin_to_dB(x: float) -> float:
    require_positive(x, "valor lineal")
    return require_finite(10.0*math.log10(x), "valor en dB")

# ---- Conversiones de potencia ----

def db_to_dbm(db: float, reference_dbm: float) -> float:
    """
    Offset relativo sobre una potencia absoluta de referencia.
    Se conserva la suma literal (dB + dBm de referencia).
    """
    return db + reference_dbm

def dbm_to_watts(dbm: float) -> float:
    return dB_to_lin(dbm - 30.0)

def watts_to_dbm(watts: float) -> float:
    require_positive(watts, "watts")
    return require_finite(10.0*math.log10(watts*1000.0), "dBm")

def watts_to_db(watts: float, reference_watts: float) -> float:
    require_positive(watts, "watts")
    require_positive(reference_watts, "reference_watts")
    ratio = require_positive(watts/reference_watts, "watts/reference_watts")
    return require_finite(10.0*math.log10(ratio), "dB")

_CONVERTERS: Dict[str, Callable[..., float]] = {
    "db_to_dbm": lambda c: db_to_dbm(c.db, c.reference_dbm),
    "dbm_to_watts": lambda c: dbm_to_watts(c.dbm),
    "watts_to_dbm": lambda c: watts_to_dbm(c.watts),
    "watts_to_db": lambda c: watts_to_db(c.watts, c.reference_watts),
}

def compute_conversion(conv) -> float:
    """Resultado de una variante de conversión (DbToDbm, DbmToWatts, WattsToDbm, WattsToDb)."""
    try:
        fn = _CONVERTERS[conv.kind]
    except KeyError:
        raise ValueError(f"Conversión no soportada: {conv.kind}") from None
    return fn(conv)
