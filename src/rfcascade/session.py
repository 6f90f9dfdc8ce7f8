from __future__ import annotations
from typing import Any, Dict, List, Optional, Union
import logging

from .schema import (
    CascadeConfig, CascadeResult, Conversion, Stage,
    CONVERSION_MODELS, default_conversions,
)
from .core.cascade import compute_cascade
from .core.errors import NumericDomainError
from .core.units import compute_conversion

logger = logging.getLogger(__name__)


class CascadeSession:
    """
    Estado de trabajo de una sesión: lista de etapas, conversiones y último resultado.
    Lo crea y lo pasa el llamador (CLI, GUI, script); no hay estado global.
    """

    def __init__(self, stages: Optional[List[Stage]] = None,
                 conversions: Optional[List[Conversion]] = None) -> None:
        self.stages: List[Stage] = list(stages or [])
        self.result: Optional[CascadeResult] = None
        self.conversions: Dict[str, Conversion] = {}
        self.results: Dict[str, Union[float, NumericDomainError]] = {}
        for conv in (conversions if conversions is not None else default_conversions()):
            self._set_conversion(conv)
        for conv in default_conversions():
            if conv.kind not in self.conversions:
                self._set_conversion(conv)

    @classmethod
    def from_config(cls, cfg: CascadeConfig) -> "CascadeSession":
        return cls(stages=cfg.stages, conversions=cfg.conversions)

    def to_config(self) -> CascadeConfig:
        return CascadeConfig(stages=list(self.stages), conversions=list(self.conversions.values()))

    # ------------------------- etapas -------------------------

    def add_stage(self, stage: Optional[Stage] = None) -> Stage:
        if stage is None:
            # etapa nueva: todo a cero, explícito
            stage = Stage(name=f"Stage {len(self.stages) + 1}", gain_db=0.0,
                          noise_figure_db=0.0, p1db_dbm=0.0, ip3_dbm=0.0)
        self.stages.append(stage)
        return stage

    def update_stage(self, idx: int, **fields: Any) -> Stage:
        """Sustituye la etapa idx por una copia validada con los campos cambiados."""
        old = self.stages[idx]
        new = Stage.model_validate({**old.model_dump(), **fields})
        self.stages[idx] = new
        return new

    def remove_stage(self, idx: int) -> Stage:
        return self.stages.pop(idx)

    def duplicate_stage(self, idx: int) -> Stage:
        blk = self.stages[idx].model_copy()
        self.stages.insert(idx + 1, blk)
        return blk

    def move_stage(self, idx: int, delta: int) -> None:
        j = idx + delta
        if 0 <= j < len(self.stages):
            self.stages[idx], self.stages[j] = self.stages[j], self.stages[idx]

    def move_stage_to(self, idx_from: int, idx_to_1based: int) -> None:
        """Mueve la etapa en idx_from a la posición idx_to (1-based, se satura al rango)."""
        n = len(self.stages)
        if n == 0: return
        idx_to = max(0, min(n - 1, int(idx_to_1based) - 1))
        if idx_to == idx_from: return
        blk = self.stages.pop(idx_from)
        self.stages.insert(idx_to, blk)

    # ------------------------- cálculo -------------------------

    def calculate(self) -> Optional[CascadeResult]:
        res = compute_cascade(self.stages)
        if res is None:
            logger.info("Sin etapas: se conserva el resultado anterior")
            return self.result
        self.result = res
        return res

    # ------------------------- conversiones -------------------------

    def _set_conversion(self, conv: Conversion) -> None:
        self.conversions[conv.kind] = conv
        try:
            self.results[conv.kind] = compute_conversion(conv)
        except NumericDomainError as e:
            self.results[conv.kind] = e

    def update_conversion(self, kind: str, **fields: Any) -> float:
        """Recalcula solo esta variante. Guarda los nuevos campos aunque queden fuera de dominio
        y en ese caso relanza NumericDomainError."""
        model = CONVERSION_MODELS[kind]
        old = self.conversions[kind]
        new = model.model_validate({**old.model_dump(), **fields, "kind": kind})
        self._set_conversion(new)
        return self.conversion_result(kind)

    def conversion_result(self, kind: str) -> float:
        """Resultado de la conversión; relanza el error de dominio si lo hubo."""
        val = self.results[kind]
        if isinstance(val, NumericDomainError):
            raise val
        return val
