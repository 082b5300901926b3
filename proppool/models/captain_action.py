from datetime import datetime, timezone

from proppool import db


class CaptainAction(db.Model):
    __tablename__ = "captain_actions"

    id = db.Column(db.Integer, primary_key=True)

    pool_id = db.Column(db.String(36), db.ForeignKey("pools.id"), nullable=False)
    prop_id = db.Column(db.String(36), nullable=True)  # Kept after prop deletion

    # Action type and details
    action_type = db.Column(
        db.String(50), nullable=False
    )  # 'resolve_prop', 'void_prop', 'lock_pool', 'complete_pool', etc.
    action_description = db.Column(db.String(500), nullable=False)

    # Additional context data (JSON)
    action_metadata = db.Column(db.JSON, nullable=True)

    created_at = db.Column(db.DateTime, default=lambda: datetime.now(timezone.utc))

    pool = db.relationship(
        "Pool", backref=db.backref("captain_actions", lazy="dynamic", cascade="all, delete-orphan")
    )

    __table_args__ = (
        db.Index("idx_captain_action_pool", "pool_id"),
        db.Index("idx_captain_action_type", "action_type"),
    )

    def __repr__(self):
        return f"<CaptainAction {self.action_type} in pool {self.pool_id}>"

    @staticmethod
    def log_action(pool_id, action_type, description, prop_id=None, action_metadata=None):
        """Record a captain action in the current session (caller commits)"""
        action = CaptainAction(
            pool_id=pool_id,
            prop_id=prop_id,
            action_type=action_type,
            action_description=description,
            action_metadata=action_metadata,
        )
        db.session.add(action)
        return action

    @staticmethod
    def get_pool_history(pool_id, limit=50):
        return (
            CaptainAction.query.filter_by(pool_id=pool_id)
            .order_by(CaptainAction.created_at.desc(), CaptainAction.id.desc())
            .limit(limit)
            .all()
        )
