import secrets
import uuid
from datetime import datetime, timezone

from proppool import db

PLAYER_STATUSES = ("active", "removed")


class Player(db.Model):
    __tablename__ = "players"

    id = db.Column(db.String(36), primary_key=True, default=lambda: str(uuid.uuid4()))
    pool_id = db.Column(db.String(36), db.ForeignKey("pools.id"), nullable=False)
    name = db.Column(db.String(50), nullable=False)
    secret = db.Column(db.String(64), nullable=False)

    # Cached sum of points_earned over this player's picks
    total_points = db.Column(db.Integer, nullable=False, default=0)

    status = db.Column(db.String(16), nullable=False, default="active")

    joined_at = db.Column(db.DateTime, default=lambda: datetime.now(timezone.utc))
    updated_at = db.Column(
        db.DateTime,
        default=lambda: datetime.now(timezone.utc),
        onupdate=lambda: datetime.now(timezone.utc),
    )

    # Relationships
    picks = db.relationship(
        "Pick", backref="player", lazy="dynamic", cascade="all, delete-orphan"
    )

    __table_args__ = (
        db.UniqueConstraint("pool_id", "name", name="unique_pool_player_name"),
        db.Index("idx_players_pool", "pool_id"),
        db.CheckConstraint("total_points >= 0", name="non_negative_total"),
    )

    def __repr__(self):
        return f"<Player {self.name} ({self.total_points} pts)>"

    def __init__(self, **kwargs):
        super(Player, self).__init__(**kwargs)
        if not self.secret:
            self.secret = secrets.token_urlsafe(32)
        if self.total_points is None:
            self.total_points = 0
        if not self.status:
            self.status = "active"

    @property
    def is_active(self):
        return self.status == "active"
