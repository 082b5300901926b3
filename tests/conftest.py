import pytest

from proppool import cache, create_app, db
from proppool.models import Pick, Player, Pool, Prop


@pytest.fixture
def app():
    app = create_app("testing")
    with app.app_context():
        db.drop_all()
        db.create_all()
        cache.clear()
        yield app
        db.session.remove()
        db.drop_all()


@pytest.fixture
def make_pool(app):
    def _make(name="Super Bowl Props", status="open", captain_name="Cap"):
        pool = Pool(name=name, captain_name=captain_name, status=status)
        db.session.add(pool)
        db.session.commit()
        return pool

    return _make


@pytest.fixture
def make_prop(app):
    def _make(pool, options=("A", "B", "C"), point_value=10, question_text=None, order=0):
        prop = Prop(
            pool_id=pool.id,
            question_text=question_text or f"Question {order}",
            options=list(options),
            point_value=point_value,
            order=order,
        )
        db.session.add(prop)
        db.session.commit()
        return prop

    return _make


@pytest.fixture
def make_player(app):
    def _make(pool, name):
        player = Player(pool_id=pool.id, name=name)
        db.session.add(player)
        db.session.commit()
        return player

    return _make


@pytest.fixture
def make_pick(app):
    def _make(player, prop, index):
        pick = Pick(player_id=player.id, prop_id=prop.id, selected_option_index=index)
        db.session.add(pick)
        db.session.commit()
        return pick

    return _make


@pytest.fixture
def scenario(make_pool, make_prop, make_player, make_pick):
    """Locked pool, one 10-point A/B/C prop, P1 picked A and P2 picked B"""
    pool = make_pool(status="open")
    prop = make_prop(pool)
    p1 = make_player(pool, "P1")
    p2 = make_player(pool, "P2")
    make_pick(p1, prop, 0)
    make_pick(p2, prop, 1)

    pool.status = "locked"
    db.session.commit()
    return {"pool": pool, "prop": prop, "p1": p1, "p2": p2}


@pytest.fixture
def totals(app):
    """Fresh total_points for each player, read back from the database"""

    def _totals(*players):
        for player in players:
            db.session.refresh(player)
        return [player.total_points for player in players]

    return _totals
