import uuid
from datetime import datetime, timezone

from proppool import db


class Pick(db.Model):
    __tablename__ = "picks"

    id = db.Column(db.String(36), primary_key=True, default=lambda: str(uuid.uuid4()))

    # Pick identification
    player_id = db.Column(db.String(36), db.ForeignKey("players.id"), nullable=False)
    prop_id = db.Column(db.String(36), db.ForeignKey("props.id"), nullable=False)

    # Pick details (may point past the options if the prop was edited later)
    selected_option_index = db.Column(db.Integer, nullable=False)

    # Results (null until the prop is resolved or voided)
    points_earned = db.Column(db.Integer)

    created_at = db.Column(db.DateTime, default=lambda: datetime.now(timezone.utc))
    updated_at = db.Column(
        db.DateTime,
        default=lambda: datetime.now(timezone.utc),
        onupdate=lambda: datetime.now(timezone.utc),
    )

    __table_args__ = (
        db.UniqueConstraint("player_id", "prop_id", name="unique_player_prop_pick"),
        db.Index("idx_picks_player", "player_id"),
        db.Index("idx_picks_prop", "prop_id"),
        db.CheckConstraint("selected_option_index >= 0", name="non_negative_option"),
    )

    def __repr__(self):
        return f"<Pick player_id={self.player_id} prop_id={self.prop_id} option={self.selected_option_index}>"
