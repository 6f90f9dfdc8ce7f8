from __future__ import annotations
from decimal import Decimal, ROUND_HALF_UP, localcontext
import math

from .errors import NumericDomainError

def round2(x: float) -> float:
    """Redondeo a 2 decimales, mitad lejos de cero (2.675 -> 2.68, -0.125 -> -0.13)."""
    # str() da el decimal más corto que representa al float, evita 2.67499999...
    with localcontext() as ctx:
        ctx.prec = 350  # cubre hasta 1e308 con 2 decimales
        return float(Decimal(str(x)).quantize(Decimal("0.01"), rounding=ROUND_HALF_UP))

def require_finite(x: float, what: str) -> float:
    if not math.isfinite(x):
        raise NumericDomainError(f"{what} no es finito: {x!r}")
    return x

def require_positive(x: float, what: str) -> float:
    if not x > 0:
        raise NumericDomainError(f"{what} debe ser > 0 (recibido {x!r})")
    return x
