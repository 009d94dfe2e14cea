from datetime import datetime
from models.db import db


class Post(db.Model):
    __tablename__ = "posts"

    id = db.Column(db.Integer, primary_key=True)

    slug = db.Column(db.String(200), nullable=False)
    locale = db.Column(db.String(5), nullable=False)

    title = db.Column(db.String(200), nullable=False)
    subtitle = db.Column(db.String(300), nullable=False)
    thumbnail = db.Column(db.String(500), nullable=True)
    thumbnail_alt = db.Column(db.String(200), nullable=True)

    # [{"type": "paragraph", "text": ...}, {"type": "image", "src": ..., "alt": ...}]
    blocks = db.Column(db.JSON, nullable=False, default=list)

    related_slug = db.Column(db.String(200), nullable=True)
    published_at = db.Column(db.DateTime, nullable=True)

    created_at = db.Column(db.DateTime, default=datetime.utcnow, nullable=False)
    updated_at = db.Column(db.DateTime, default=datetime.utcnow, onupdate=datetime.utcnow, nullable=False)

    __table_args__ = (
        db.UniqueConstraint("slug", "locale", name="uq_post_slug_locale"),
    )
