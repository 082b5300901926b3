import secrets
import uuid
from datetime import datetime, timezone

from flask import current_app

from proppool import db

POOL_STATUSES = ("draft", "open", "locked", "completed")


class Pool(db.Model):
    __tablename__ = "pools"

    id = db.Column(db.String(36), primary_key=True, default=lambda: str(uuid.uuid4()))
    name = db.Column(db.String(100), nullable=False)
    description = db.Column(db.Text)

    # Short code players use to join
    invite_code = db.Column(db.String(16), unique=True, nullable=False, index=True)

    # Captain identity and capability token
    captain_name = db.Column(db.String(50), nullable=False)
    captain_secret = db.Column(db.String(64), nullable=False)

    # Lifecycle: draft -> open -> locked -> completed
    status = db.Column(db.String(16), nullable=False, default="open")

    created_at = db.Column(db.DateTime, default=lambda: datetime.now(timezone.utc))
    updated_at = db.Column(
        db.DateTime,
        default=lambda: datetime.now(timezone.utc),
        onupdate=lambda: datetime.now(timezone.utc),
    )

    # Relationships
    props = db.relationship(
        "Prop",
        backref="pool",
        lazy="dynamic",
        order_by="Prop.order",
        cascade="all, delete-orphan",
    )
    players = db.relationship(
        "Player", backref="pool", lazy="dynamic", cascade="all, delete-orphan"
    )

    __table_args__ = (
        db.CheckConstraint(
            "status IN ('draft', 'open', 'locked', 'completed')",
            name="valid_pool_status",
        ),
    )

    def __repr__(self):
        return f"<Pool {self.name} [{self.status}]>"

    def __init__(self, **kwargs):
        super(Pool, self).__init__(**kwargs)
        if not self.invite_code:
            self.invite_code = self.generate_invite_code()
        if not self.captain_secret:
            self.captain_secret = secrets.token_urlsafe(32)
        if not self.status:
            self.status = "open"

    @staticmethod
    def generate_invite_code():
        """Generate a unique upper-case invite code"""
        length = current_app.config.get("INVITE_CODE_LENGTH", 8)
        while True:
            code = secrets.token_urlsafe(length)[:length].upper()
            if not Pool.query.filter_by(invite_code=code).first():
                return code

    @staticmethod
    def get_by_invite_code(code):
        return Pool.query.filter_by(invite_code=code.upper()).first()

    @property
    def accepts_picks(self):
        return self.status == "open"

    def is_captain_secret(self, secret):
        """Constant-time comparison against the captain secret"""
        if not secret or not self.captain_secret:
            return False
        return secrets.compare_digest(secret, self.captain_secret)

    def get_active_props(self):
        """Get non-voided props in display order"""
        return self.props.filter_by(status="active").all()

    def get_active_players(self):
        return self.players.filter_by(status="active").all()

    def count_unresolved_props(self):
        """Count active props still waiting for a correct answer"""
        from .prop import Prop

        return self.props.filter(
            Prop.status == "active", Prop.correct_option_index.is_(None)
        ).count()

    def has_resolved_props(self):
        from .prop import Prop

        return (
            self.props.filter(Prop.correct_option_index.isnot(None)).first()
            is not None
        )
