import uuid
from datetime import datetime, timezone

from proppool import db

PROP_STATUSES = ("active", "voided")


class Prop(db.Model):
    __tablename__ = "props"

    id = db.Column(db.String(36), primary_key=True, default=lambda: str(uuid.uuid4()))
    pool_id = db.Column(db.String(36), db.ForeignKey("pools.id"), nullable=False)

    # Question and answer options
    question_text = db.Column(db.String(500), nullable=False)
    options = db.Column(db.JSON, nullable=False)
    point_value = db.Column(db.Integer, nullable=False)
    category = db.Column(db.String(50))

    # Resolution (null until the captain picks the correct option)
    correct_option_index = db.Column(db.Integer)
    status = db.Column(db.String(16), nullable=False, default="active")

    order = db.Column(db.Integer, nullable=False, default=0)

    created_at = db.Column(db.DateTime, default=lambda: datetime.now(timezone.utc))
    updated_at = db.Column(
        db.DateTime,
        default=lambda: datetime.now(timezone.utc),
        onupdate=lambda: datetime.now(timezone.utc),
    )

    # Relationships
    picks = db.relationship(
        "Pick", backref="prop", lazy="dynamic", cascade="all, delete-orphan"
    )

    __table_args__ = (
        db.Index("idx_props_pool", "pool_id"),
        db.Index("idx_props_pool_order", "pool_id", "order"),
        db.CheckConstraint("point_value > 0", name="positive_point_value"),
        db.CheckConstraint(
            "status != 'voided' OR correct_option_index IS NULL",
            name="voided_prop_unresolved",
        ),
    )

    def __repr__(self):
        return f"<Prop {self.question_text[:30]!r} [{self.status}]>"

    @property
    def is_voided(self):
        return self.status == "voided"

    def is_valid_option(self, index):
        """Check an option index against the current options"""
        if isinstance(index, bool) or not isinstance(index, int):
            return False
        return 0 <= index < len(self.options or [])
