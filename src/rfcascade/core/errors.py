from __future__ import annotations


class RFCascadeError(Exception):
    """Base de los errores del núcleo de cálculo."""


class NumericDomainError(RFCascadeError, ValueError):
    """Operación fuera de dominio: log10 de un valor no positivo, división por
    una ganancia lineal nula o desborde al pasar de dB a lineal."""


class CascadeNotComputedError(RFCascadeError):
    """Se pidió un informe sin haber calculado la cascada."""

    def __init__(self, msg: str = "La cascada aún no se ha calculado.") -> None:
        super().__init__(msg)
