import math

import pytest
from pydantic import ValidationError

from rfcascade.core.cascade import KTB_DBM_HZ, cascade_profile, compute_cascade, sfdr_db
from rfcascade.core.errors import NumericDomainError
from rfcascade.schema import CascadeResult, Stage


def _lin(x_db):
    return 10 ** (x_db / 10)


def _stage(**kw):
    fields = dict(gain_db=0, noise_figure_db=0, p1db_dbm=0, ip3_dbm=0)
    fields.update(kw)
    return Stage(**fields)


def test_single_stage_lna(lna):
    res = compute_cascade([lna])
    assert res == CascadeResult(
        total_gain_db=20.0,
        total_noise_figure_db=1.5,
        total_p1db_dbm=10.0,
        total_ip3_dbm=20.0,
        sfdr_db=128.33,
    )


@pytest.mark.parametrize("g,nf,p1,ip3", [
    (20, 1.5, 10, 20),
    (-3.25, 3.25, 42.5, -7.75),
    (0, 0, 0, 0),
    (35.1, 0.35, -12.4, 1.05),
])
def test_single_stage_is_identity(g, nf, p1, ip3):
    res = compute_cascade([Stage(gain_db=g, noise_figure_db=nf, p1db_dbm=p1, ip3_dbm=ip3)])
    assert res.total_gain_db == g
    assert res.total_noise_figure_db == nf
    assert res.total_p1db_dbm == p1
    assert res.total_ip3_dbm == ip3


def test_empty_chain_has_no_result():
    assert compute_cascade([]) is None
    assert cascade_profile([]) == []


def test_total_gain_is_sum(stage_a, stage_b, lna):
    res = compute_cascade([stage_a, stage_b, lna])
    assert res.total_gain_db == 35.0


def test_order_sensitivity(stage_a, stage_b):
    ab = compute_cascade([stage_a, stage_b])
    ba = compute_cascade([stage_b, stage_a])

    assert ab.total_gain_db == ba.total_gain_db == 15.0
    assert ab.total_ip3_dbm != ba.total_ip3_dbm
    assert ab.total_noise_figure_db != ba.total_noise_figure_db
    assert ab.total_p1db_dbm != ba.total_p1db_dbm

    assert ab.total_ip3_dbm == pytest.approx(4.86, abs=1e-9)
    assert ba.total_ip3_dbm == pytest.approx(11.99, abs=1e-9)
    assert ab.total_noise_figure_db == pytest.approx(2.26, abs=1e-9)
    assert ab.total_p1db_dbm == -10.0
    assert ba.total_p1db_dbm == 0.0
    assert ab.sfdr_db == pytest.approx(117.73, abs=1e-9)


def test_friis_matches_closed_form():
    s1 = _stage(gain_db=15, noise_figure_db=0.8)
    s2 = _stage(gain_db=-6, noise_figure_db=6)
    s3 = _stage(gain_db=20, noise_figure_db=4)
    F = _lin(0.8) + (_lin(6) - 1) / _lin(15) + (_lin(4) - 1) / (_lin(15) * _lin(-6))
    prof = cascade_profile([s1, s2, s3])
    assert prof[-1]["nf_db"] == pytest.approx(10 * math.log10(F), rel=1e-12)


def test_friis_excludes_current_stage_gain():
    # la ganancia de la segunda etapa no debe influir en su propio término
    a = cascade_profile([_stage(gain_db=10, noise_figure_db=3), _stage(gain_db=0, noise_figure_db=10)])
    b = cascade_profile([_stage(gain_db=10, noise_figure_db=3), _stage(gain_db=40, noise_figure_db=10)])
    assert a[-1]["nf_db"] == pytest.approx(b[-1]["nf_db"], rel=1e-15)


def test_p1db_is_input_referred_minimum():
    stages = [
        _stage(gain_db=20, p1db_dbm=30),
        _stage(gain_db=10, p1db_dbm=15),   # -5 dBm referido
        _stage(gain_db=0, p1db_dbm=40),    # 10 dBm referido
    ]
    assert compute_cascade(stages).total_p1db_dbm == -5.0


def test_ip3_reciprocal_combination():
    stages = [_stage(gain_db=10, ip3_dbm=30), _stage(gain_db=0, ip3_dbm=40)]
    # ambos valen 30 dBm referidos a la entrada -> 3 dB menos
    assert compute_cascade(stages).total_ip3_dbm == pytest.approx(26.99, abs=1e-9)


def test_sfdr_uses_thermal_floor():
    assert KTB_DBM_HZ == -174.0
    assert sfdr_db(20.0, 1.5) == pytest.approx(128.3333333, rel=1e-9)


@pytest.mark.parametrize("big", [1000, 1e9, 1e300])
def test_ideal_stage_is_transparent(stage_a, stage_b, big):
    base = compute_cascade([stage_a, stage_b])
    ideal = Stage(name="ideal", gain_db=0, noise_figure_db=0, p1db_dbm=big, ip3_dbm=big)
    res = compute_cascade([stage_a, stage_b, ideal])
    assert res.total_gain_db == base.total_gain_db
    assert res.total_noise_figure_db == base.total_noise_figure_db
    assert res.total_p1db_dbm == base.total_p1db_dbm
    assert res.total_ip3_dbm == base.total_ip3_dbm


@pytest.mark.parametrize("g,nf,p1,ip3", [
    (5000, 1.5, 10, 20),
    (-5000, 1.5, 10, 20),
    (20, 5000, 10, 20),
    (20, 1.5, 10, 5000),
    (20, 1.5, 1e9, 1e9),
])
def test_single_stage_identity_at_extremes(g, nf, p1, ip3):
    res = compute_cascade([Stage(gain_db=g, noise_figure_db=nf, p1db_dbm=p1, ip3_dbm=ip3)])
    assert (res.total_gain_db, res.total_noise_figure_db) == (g, nf)
    assert (res.total_p1db_dbm, res.total_ip3_dbm) == (p1, ip3)
    assert math.isfinite(res.sfdr_db)


def test_huge_first_stage_ip3_adds_nothing(stage_b):
    res = compute_cascade([_stage(gain_db=10, noise_figure_db=2, p1db_dbm=10, ip3_dbm=5000), stage_b])
    # solo cuenta el IP3 de B referido a la entrada
    assert res.total_ip3_dbm == 5.0
    assert res.total_p1db_dbm == -10.0


def test_huge_gain_silences_later_noise(stage_b):
    res = compute_cascade([_stage(gain_db=5000, noise_figure_db=2, p1db_dbm=100, ip3_dbm=6000), stage_b])
    assert res.total_gain_db == 5005.0
    assert res.total_noise_figure_db == 2.0
    assert res.total_p1db_dbm == -5000.0
    assert res.total_ip3_dbm == -4985.0


def test_profile_tracks_subchains(stage_a, stage_b, lna):
    stages = [stage_a, stage_b, lna]
    prof = cascade_profile(stages)
    assert [p["i"] for p in prof] == [0, 1, 2]
    assert [p["name"] for p in prof] == ["A", "B", "LNA"]
    assert [p["gain_db"] for p in prof] == [10, 15, 35]
    for k, p in enumerate(prof):
        sub = compute_cascade(stages[:k + 1])
        assert round(p["nf_db"], 2) == pytest.approx(sub.total_noise_figure_db, abs=0.01)
        assert round(p["ip3_dbm"], 2) == pytest.approx(sub.total_ip3_dbm, abs=0.01)


def test_inputs_are_not_mutated(stage_a, stage_b):
    stages = [stage_a, stage_b]
    before = [s.model_dump() for s in stages]
    compute_cascade(stages)
    cascade_profile(stages)
    assert [s.model_dump() for s in stages] == before
    assert stages[0] is stage_a and stages[1] is stage_b


def test_deterministic(stage_a, stage_b):
    assert compute_cascade([stage_a, stage_b]) == compute_cascade([stage_a, stage_b])


def test_negative_noise_factor_is_domain_error():
    stages = [_stage(gain_db=-10, noise_figure_db=0), _stage(gain_db=0, noise_figure_db=-100)]
    with pytest.raises(NumericDomainError):
        compute_cascade(stages)


def test_underflowing_gain_is_domain_error():
    stages = [_stage(gain_db=-4000), _stage()]
    with pytest.raises(NumericDomainError):
        compute_cascade(stages)


def test_overflowing_noise_factor_is_domain_error():
    # F_total no cabe en un float
    with pytest.raises(NumericDomainError):
        compute_cascade([_stage(noise_figure_db=5000), _stage()])


@pytest.mark.parametrize("bad", [float("nan"), float("inf"), "abc", None])
def test_stage_rejects_non_finite_or_text(bad):
    with pytest.raises(ValidationError):
        _stage(gain_db=bad)


@pytest.mark.parametrize("missing", ["gain_db", "noise_figure_db", "p1db_dbm", "ip3_dbm"])
def test_stage_fields_are_required(missing):
    fields = dict(gain_db=10, noise_figure_db=2, p1db_dbm=10, ip3_dbm=20)
    del fields[missing]
    with pytest.raises(ValidationError):
        Stage(**fields)


def test_stage_is_frozen(lna):
    with pytest.raises(ValidationError):
        lna.gain_db = 3.0
