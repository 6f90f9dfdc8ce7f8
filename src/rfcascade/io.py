from __future__ import annotations
import json, time
from pathlib import Path
from typing import Any, Dict

from .schema import CascadeConfig

def load_config(path: str | Path) -> CascadeConfig:
    """Lee y valida un JSON de cadena. Lanza pydantic.ValidationError si no es válido."""
    raw = json.loads(Path(path).read_text(encoding="utf-8"))
    return CascadeConfig.model_validate(raw)

def write_runlog(path: Path, cfg: CascadeConfig, result: Dict[str, Any] | None) -> None:
    obj = {
        "date": time.strftime("%d-%b-%Y %H:%M:%S"),
        **cfg.model_dump(mode="json"),
        "result": result,
    }
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_text(json.dumps(obj, ensure_ascii=False, indent=2), encoding="utf-8")

def runlog_name() -> str:
    return f"runlog_{time.strftime('%Y-%m-%d_%H-%M-%S')}.json"
