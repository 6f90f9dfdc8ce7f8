import os
os.environ.setdefault("MPLBACKEND", "Agg")

import json
from pathlib import Path

import pytest

from rfcascade.schema import Stage

EXAMPLES = Path(__file__).resolve().parent.parent / "examples"


@pytest.fixture
def lna() -> Stage:
    return Stage(name="LNA", gain_db=20, noise_figure_db=1.5, p1db_dbm=10, ip3_dbm=20)


@pytest.fixture
def stage_a() -> Stage:
    return Stage(name="A", gain_db=10, noise_figure_db=2, p1db_dbm=10, ip3_dbm=20)


@pytest.fixture
def stage_b() -> Stage:
    return Stage(name="B", gain_db=5, noise_figure_db=3, p1db_dbm=0, ip3_dbm=15)


@pytest.fixture
def example_config_path() -> Path:
    return EXAMPLES / "receiver_chain.json"


@pytest.fixture
def write_config(tmp_path):
    def _write(obj, name="chain.json") -> Path:
        p = tmp_path / name
        p.write_text(json.dumps(obj), encoding="utf-8")
        return p
    return _write
