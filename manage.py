#!/usr/bin/env python3
"""
Prop Pool Management CLI

This script provides command-line management functionality for the Prop Pool application.
"""

import logging
import sys

import click
from flask.cli import with_appcontext
from sqlalchemy import text
from sqlalchemy.exc import SQLAlchemyError

from proppool import create_app, db
from proppool.models import Pick, Player, Pool, Prop
from proppool.services import pool_service, resolution_service
from proppool.services.leaderboard_service import get_leaderboard
from proppool.utils.exceptions import PoolNotFound, PropPoolError

logger = logging.getLogger(__name__)


def _pool_by_code(code):
    pool = Pool.get_by_invite_code(code)
    if pool is None:
        raise PoolNotFound(f"No pool with invite code {code}")
    return pool


def _fail(error):
    """Report a domain error and exit non-zero"""
    click.echo(f"❌ {error.message} ({error.code})")
    sys.exit(1)


@click.group()
def cli():
    """Prop Pool Management CLI"""
    pass


# Database Commands
@cli.group("db-cmd")
def db_cmd():
    """Database commands"""
    pass


@db_cmd.command()
@with_appcontext
def init():
    """Create all tables"""
    try:
        db.create_all()
        click.echo("✅ Database tables created")
    except SQLAlchemyError as e:
        click.echo(f"❌ Database error: {str(e)}")
        logger.error(f"Database init failed: {e}")
        sys.exit(1)


@db_cmd.command()
@click.confirmation_option(prompt="This deletes every pool. Continue?")
@with_appcontext
def reset():
    """Drop and recreate all tables"""
    db.drop_all()
    db.create_all()
    click.echo("✅ Database reset")


# Pool Commands
@cli.group()
def pool():
    """Pool management commands"""
    pass


@pool.command("create")
@click.argument("name")
@click.argument("captain")
@click.option("--description", help="Pool description")
@click.option("--draft", is_flag=True, help="Start the pool as a draft")
@with_appcontext
def create_pool(name, captain, description, draft):
    """Create a new pool"""
    try:
        new_pool = pool_service.create_pool(
            name, captain, description=description, status="draft" if draft else "open"
        )
    except PropPoolError as e:
        _fail(e)

    click.echo(f"✅ Created pool '{new_pool.name}'")
    click.echo(f"   Invite code:    {new_pool.invite_code}")
    click.echo(f"   Captain secret: {new_pool.captain_secret}")


@pool.command("lock")
@click.argument("code")
@with_appcontext
def lock_pool(code):
    """Lock a pool so its props can be resolved"""
    try:
        pool_service.lock_pool(_pool_by_code(code).id)
    except PropPoolError as e:
        _fail(e)
    click.echo(f"🔒 Pool {code} locked")


@pool.command("complete")
@click.argument("code")
@with_appcontext
def complete_pool(code):
    """Mark a fully resolved pool as completed"""
    try:
        resolution_service.complete_pool(_pool_by_code(code).id)
    except PropPoolError as e:
        _fail(e)
    click.echo(f"🏁 Pool {code} completed")


@pool.command("leaderboard")
@click.argument("code")
@with_appcontext
def leaderboard(code):
    """Show the leaderboard and pick highlights"""
    try:
        data = get_leaderboard(_pool_by_code(code).id)
    except PropPoolError as e:
        _fail(e)

    click.echo(f"🏆 {data['pool_name']} [{data['pool_status']}]")
    click.echo("=" * 40)
    for entry in data["leaderboard"]:
        captain = " (captain)" if entry["is_captain"] else ""
        click.echo(f"{entry['rank']:>3}. {entry['name']}{captain}: {entry['total_points']} pts")

    summary = data["summary"]
    if summary["most_agreed"]:
        agreed = summary["most_agreed"]
        click.echo(
            f"\n🤝 Most agreed: {agreed['question_text']} -> "
            f"{agreed['option_text']} ({agreed['percent']}%)"
        )
    if summary["most_divisive"]:
        divisive = summary["most_divisive"]
        click.echo(f"⚖️  Most divisive: {divisive['question_text']} ({divisive['percent']}%)")
    if summary["biggest_upset"]:
        upset = summary["biggest_upset"]
        click.echo(
            f"😱 Biggest upset: {upset['question_text']} - {upset['popular_percent']}% "
            f"picked {upset['popular_option']}, answer was {upset['correct_option']}"
        )


@pool.command("rescore")
@click.argument("code")
@with_appcontext
def rescore(code):
    """Re-score every pick and rebuild every player total"""
    try:
        result = resolution_service.rescore_pool(_pool_by_code(code).id)
    except PropPoolError as e:
        _fail(e)

    click.echo(f"🔄 Rescored {result['picks_rescored']} picks")
    for player_id, (old, new) in result["corrections"].items():
        click.echo(f"   Player {player_id}: {old} -> {new}")
    if not result["corrections"]:
        click.echo("✅ All totals were already correct")


@pool.command("check")
@click.argument("code")
@with_appcontext
def check(code):
    """Verify cached player totals against their picks"""
    try:
        mismatches = resolution_service.find_total_mismatches(_pool_by_code(code).id)
    except PropPoolError as e:
        _fail(e)

    if not mismatches:
        click.echo("✅ All player totals match their picks")
        return

    for row in mismatches:
        click.echo(
            f"⚠️  {row['name']}: cached {row['cached_total']}, "
            f"picks add up to {row['recomputed_total']}"
        )
    click.echo(f"Run 'python manage.py pool rescore {code}' to repair")
    sys.exit(1)


# Prop Commands
@cli.group()
def prop():
    """Prop resolution commands"""
    pass


@prop.command("resolve")
@click.argument("prop_id")
@click.argument("correct_option_index", type=int)
@with_appcontext
def resolve(prop_id, correct_option_index):
    """Set the correct answer for a prop"""
    try:
        result = resolution_service.resolve_prop(prop_id, correct_option_index)
    except PropPoolError as e:
        _fail(e)

    resolved = result["prop"]
    click.echo(
        f"✅ Resolved '{resolved.question_text}' -> {resolved.options[correct_option_index]}"
    )
    click.echo(f"   {len(result['affected_player_ids'])} player total(s) updated")


@prop.command("void")
@click.argument("prop_id")
@with_appcontext
def void(prop_id):
    """Void a prop and zero its picks"""
    try:
        result = resolution_service.void_prop(prop_id)
    except PropPoolError as e:
        _fail(e)

    click.echo(f"🚫 Voided '{result['prop'].question_text}'")
    click.echo(f"   {len(result['affected_player_ids'])} player total(s) updated")


@cli.command()
@with_appcontext
def status():
    """Show application status"""
    click.echo("🎯 Prop Pool Application Status")
    click.echo("=" * 40)

    try:
        db.session.execute(text("SELECT 1"))
        click.echo("✅ Database: Connected")
    except SQLAlchemyError as e:
        click.echo(f"❌ Database: Error - {str(e)}")
        return

    for status_name in ("draft", "open", "locked", "completed"):
        count = Pool.query.filter_by(status=status_name).count()
        click.echo(f"🏆 Pools {status_name}: {count}")

    click.echo(f"❓ Props: {Prop.query.count()}")
    click.echo(f"👥 Players: {Player.query.filter_by(status='active').count()}")
    click.echo(f"✏️  Picks: {Pick.query.count()}")


if __name__ == "__main__":
    app = create_app()
    with app.app_context():
        cli()
