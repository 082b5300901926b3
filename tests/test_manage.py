from click.testing import CliRunner

from manage import cli
from proppool import db
from proppool.models import Pool
from proppool.services import pool_service


def _invoke(*args):
    return CliRunner().invoke(cli, list(args))


def test_create_lock_resolve_and_show_leaderboard(app):
    result = _invoke("pool", "create", "Office Pool", "Cap")
    assert result.exit_code == 0, result.output
    pool = Pool.query.filter_by(name="Office Pool").one()

    prop = pool_service.add_prop(pool.id, "Rain?", ["Yes", "No"], 4)
    pool_service.submit_pick(pool.get_active_players()[0].id, prop.id, 1)

    assert _invoke("pool", "lock", pool.invite_code).exit_code == 0
    assert _invoke("prop", "resolve", prop.id, "1").exit_code == 0

    result = _invoke("pool", "leaderboard", pool.invite_code.lower())
    assert result.exit_code == 0
    assert "1. Cap (captain): 4 pts" in result.output


def test_domain_errors_exit_non_zero(app):
    result = _invoke("pool", "lock", "NOPE1234")

    assert result.exit_code == 1
    assert "POOL_NOT_FOUND" in result.output


def test_check_reports_drift_and_rescore_fixes_it(app):
    pool = pool_service.create_pool("Drift", "Cap")
    captain = pool.get_active_players()[0]
    captain.total_points = 7
    db.session.commit()

    result = _invoke("pool", "check", pool.invite_code)
    assert result.exit_code == 1
    assert "cached 7" in result.output

    result = _invoke("pool", "rescore", pool.invite_code)
    assert result.exit_code == 0
    assert "7 -> 0" in result.output

    assert _invoke("pool", "check", pool.invite_code).exit_code == 0
