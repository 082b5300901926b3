import logging

import pytest

from config import Config
from proppool import db
from proppool.models import Pool
from proppool.utils.exceptions import (
    InvalidStateTransition,
    NotFound,
    PoolNotFound,
    PoolNotLocked,
    TransactionFailure,
)
from proppool.utils.logging_config import ContextualLogger, setup_logging
from proppool.utils.transaction import unit_of_work


def test_errors_carry_codes_and_details():
    error = PoolNotFound(pool_id="abc")

    assert isinstance(error, NotFound)
    assert error.code == "POOL_NOT_FOUND"
    assert error.details == {"pool_id": "abc"}
    assert error.to_dict() == {"code": "POOL_NOT_FOUND", "message": "Pool not found."}
    assert issubclass(PoolNotLocked, InvalidStateTransition)


def test_contextual_logger_appends_bound_context(caplog):
    log = ContextualLogger("proppool.test").bind(pool_id="p1").bind(prop_id="q1")

    with caplog.at_level(logging.INFO, logger="proppool.test"):
        log.info("Prop resolved")

    assert caplog.messages == ["Prop resolved [pool_id=p1 prop_id=q1]"]


def test_unit_of_work_rolls_back_on_domain_error(app):
    with pytest.raises(PoolNotLocked):
        with unit_of_work("test") as session:
            session.add(Pool(name="Ghost", captain_name="Cap"))
            session.flush()
            raise PoolNotLocked()

    assert Pool.query.filter_by(name="Ghost").count() == 0


def test_unit_of_work_wraps_database_errors(app):
    db.session.add(Pool(name="First", captain_name="Cap", invite_code="SAMECODE"))
    db.session.commit()

    with pytest.raises(TransactionFailure) as exc_info:
        with unit_of_work("duplicate_code") as session:
            session.add(Pool(name="Second", captain_name="Cap", invite_code="SAMECODE"))

    assert exc_info.value.code == "TRANSACTION_FAILED"
    assert Pool.query.count() == 1


def test_file_logging_writes_plain_lines(app, tmp_path):
    app.config.update(LOG_TO_FILE=True, LOG_DIR=str(tmp_path))
    setup_logging(app)
    try:
        logging.getLogger("proppool.test").error("Resolve failed")
    finally:
        app.config["LOG_TO_FILE"] = False
        setup_logging(app)

    app_log = (tmp_path / "proppool.log").read_text()
    error_log = (tmp_path / "errors.log").read_text()

    assert "[ERROR] proppool.test: Resolve failed" in app_log
    assert "N/A" not in app_log
    assert "Resolve failed" in error_log
    assert "test_utils.py" in error_log


def test_config_carries_no_session_secret(app):
    assert not hasattr(Config, "SECRET_KEY")
    assert app.config["SECRET_KEY"] is None
