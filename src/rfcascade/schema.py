from __future__ import annotations
from typing import Annotated, Literal, List, Union
from pydantic import BaseModel, Field, FiniteFloat

# ---- Etapa de la cadena ----
class Stage(BaseModel):
    name: str = Field("Stage", description="Etiqueta, no afecta al cálculo")
    gain_db: FiniteFloat = Field(..., description="Ganancia/pérdida (dB)")
    noise_figure_db: FiniteFloat = Field(..., description="Figura de ruido (dB)")
    p1db_dbm: FiniteFloat = Field(..., description="P1dB de salida (dBm)")
    ip3_dbm: FiniteFloat = Field(..., description="IP3 (dBm)")

    class Config:
        frozen = True

class CascadeResult(BaseModel):
    total_gain_db: float
    total_noise_figure_db: float
    total_p1db_dbm: float
    total_ip3_dbm: float
    sfdr_db: float

    class Config:
        frozen = True

# ---- Conversiones de potencia ----
class DbToDbm(BaseModel):
    kind: Literal["db_to_dbm"] = "db_to_dbm"
    db: FiniteFloat = 0.0
    reference_dbm: FiniteFloat = 0.0

    class Config:
        frozen = True

class DbmToWatts(BaseModel):
    kind: Literal["dbm_to_watts"] = "dbm_to_watts"
    dbm: FiniteFloat = 0.0

    class Config:
        frozen = True

class WattsToDbm(BaseModel):
    kind: Literal["watts_to_dbm"] = "watts_to_dbm"
    watts: FiniteFloat = 0.001

    class Config:
        frozen = True

class WattsToDb(BaseModel):
    kind: Literal["watts_to_db"] = "watts_to_db"
    watts: FiniteFloat = 0.001
    reference_watts: FiniteFloat = 0.001

    class Config:
        frozen = True

Conversion = Annotated[Union[DbToDbm, DbmToWatts, WattsToDbm, WattsToDb], Field(discriminator="kind")]

CONVERSION_KINDS = ("db_to_dbm", "dbm_to_watts", "watts_to_dbm", "watts_to_db")
CONVERSION_MODELS = {
    "db_to_dbm": DbToDbm,
    "dbm_to_watts": DbmToWatts,
    "watts_to_dbm": WattsToDbm,
    "watts_to_db": WattsToDb,
}

def default_conversions() -> List[Conversion]:
    return [DbToDbm(), DbmToWatts(), WattsToDbm(), WattsToDb()]

# ---- Documento completo ----
class CascadeConfig(BaseModel):
    stages: List[Stage] = Field(default_factory=list)
    conversions: List[Conversion] = Field(default_factory=default_conversions)
