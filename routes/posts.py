import json
import re
import unicodedata
from datetime import datetime

from flask import Blueprint, request, jsonify, g
from sqlalchemy.exc import IntegrityError

from models import db
from models.post import Post
from security.rbac import require_admin
from services.metadata import parse_datetime
from services.pricing import SUPPORTED_LOCALES
from utils.audit import log_event
from utils.errors import ConflictError, NotFoundError, ValidationError

post_bp = Blueprint("posts", __name__, url_prefix="/posts")


def slugify(title: str) -> str:
    # "Sessão de Família!" -> "sessao-de-familia"
    text = unicodedata.normalize("NFKD", title).encode("ascii", "ignore").decode("ascii")
    text = re.sub(r"[^a-z0-9]+", "-", text.lower())
    return text.strip("-")


def post_summary(p: Post) -> dict:
    return {
        "id": p.id,
        "slug": p.slug,
        "locale": p.locale,
        "title": p.title,
        "subtitle": p.subtitle,
        "thumbnail": p.thumbnail,
        "thumbnailAlt": p.thumbnail_alt,
        "publishedAt": p.published_at.isoformat() if p.published_at else None,
    }


def post_to_json(p: Post) -> dict:
    data = post_summary(p)
    data.update({
        "blocks": p.blocks or [],
        "relatedSlug": p.related_slug,
        "createdAt": p.created_at.isoformat() if p.created_at else None,
        "updatedAt": p.updated_at.isoformat() if p.updated_at else None,
    })
    return data


def _parse_blocks(raw) -> list:
    if isinstance(raw, str):
        try:
            raw = json.loads(raw)
        except ValueError:
            raise ValidationError("blocks must be valid JSON")
    if not isinstance(raw, list):
        raise ValidationError("blocks must be a list")

    for block in raw:
        if not isinstance(block, dict) or not block.get("type"):
            raise ValidationError("each block needs a type")
    return raw


def _image_blocks(blocks: list) -> list:
    return [b for b in blocks if b.get("type") == "image" and b.get("src")]


def _pick_thumbnail(images: list, thumbnail_src):
    for image in images:
        if thumbnail_src and image["src"] == thumbnail_src:
            return image
    return images[0]


def _validated_body(data: dict) -> dict:
    title = (data.get("title") or "").strip()
    subtitle = (data.get("subtitle") or "").strip()
    locale = (data.get("locale") or "").strip().lower()

    if not title or not subtitle or not locale or data.get("blocks") is None:
        raise ValidationError("title, subtitle, locale and blocks are required")
    if locale not in SUPPORTED_LOCALES:
        raise ValidationError(f"locale must be one of {', '.join(SUPPORTED_LOCALES)}")

    blocks = _parse_blocks(data.get("blocks"))
    images = _image_blocks(blocks)
    if not images:
        raise ValidationError("at least one image block is required")

    slug = slugify(title)
    if not slug:
        raise ValidationError("title must contain letters or digits")

    published_at = None
    if data.get("publishedAt"):
        published_at = parse_datetime(str(data["publishedAt"]))
        if published_at is None:
            raise ValidationError("publishedAt must be an ISO date")

    return {
        "title": title,
        "subtitle": subtitle,
        "locale": locale,
        "slug": slug,
        "blocks": blocks,
        "images": images,
        "published_at": published_at,
        "related_slug": (data.get("relatedSlug") or "").strip() or None,
    }


def _find(slug: str, locale: str) -> Post:
    post = Post.query.filter_by(slug=slug, locale=locale).first()
    if not post:
        raise NotFoundError("Post not found")
    return post


@post_bp.get("")
def list_posts():
    q = Post.query
    locale = request.args.get("locale")
    if locale:
        q = q.filter_by(locale=locale.lower())

    rows = q.order_by(Post.published_at.desc(), Post.created_at.desc()).all()
    return jsonify([post_summary(p) for p in rows]), 200


@post_bp.get("/related")
def related_post():
    related_slug = request.args.get("relatedSlug")
    locale = request.args.get("locale")
    if not related_slug or not locale:
        raise ValidationError("relatedSlug and locale are required")

    return jsonify(post_to_json(_find(related_slug, locale.lower()))), 200


@post_bp.get("/<slug>")
def get_post(slug: str):
    locale = request.args.get("locale")
    if not locale:
        raise ValidationError("locale is required")

    return jsonify(post_to_json(_find(slug, locale.lower()))), 200


@post_bp.post("")
@require_admin
def create_post():
    data = request.get_json(silent=True) or {}
    body = _validated_body(data)

    if Post.query.filter_by(slug=body["slug"], locale=body["locale"]).first():
        raise ConflictError("A post with this title already exists for this locale")

    thumb = _pick_thumbnail(body["images"], data.get("thumbnailSrc"))
    post = Post(
        slug=body["slug"],
        locale=body["locale"],
        title=body["title"],
        subtitle=body["subtitle"],
        blocks=body["blocks"],
        thumbnail=thumb["src"],
        thumbnail_alt=thumb.get("alt"),
        related_slug=body["related_slug"],
        published_at=body["published_at"] or datetime.utcnow(),
    )
    db.session.add(post)
    try:
        db.session.commit()
    except IntegrityError:
        db.session.rollback()
        raise ConflictError("A post with this title already exists for this locale")

    log_event("POST_CREATE", admin_email=g.admin_email, entity="post", entity_id=str(post.id),
              metadata={"slug": post.slug, "locale": post.locale})
    return jsonify(post_to_json(post)), 201


@post_bp.put("/<slug>")
@require_admin
def update_post(slug: str):
    data = request.get_json(silent=True) or {}
    body = _validated_body(data)
    post = _find(slug, body["locale"])

    if body["slug"] != post.slug and Post.query.filter_by(slug=body["slug"], locale=body["locale"]).first():
        raise ConflictError("A post with this title already exists for this locale")

    post.slug = body["slug"]
    post.title = body["title"]
    post.subtitle = body["subtitle"]
    post.blocks = body["blocks"]
    post.related_slug = body["related_slug"]
    if body["published_at"]:
        post.published_at = body["published_at"]

    current_srcs = {img["src"] for img in body["images"]}
    if data.get("thumbnailSrc") or post.thumbnail not in current_srcs:
        thumb = _pick_thumbnail(body["images"], data.get("thumbnailSrc"))
        post.thumbnail = thumb["src"]
        post.thumbnail_alt = thumb.get("alt")

    db.session.commit()

    log_event("POST_UPDATE", admin_email=g.admin_email, entity="post", entity_id=str(post.id),
              metadata={"slug": post.slug, "locale": post.locale})
    return jsonify(post_to_json(post)), 200


@post_bp.delete("/<slug>")
@require_admin
def delete_post(slug: str):
    locale = request.args.get("locale")
    if not locale:
        raise ValidationError("locale is required")

    post = _find(slug, locale.lower())
    post_id = post.id
    db.session.delete(post)
    db.session.commit()

    log_event("POST_DELETE", admin_email=g.admin_email, entity="post", entity_id=str(post_id),
              metadata={"slug": slug, "locale": locale.lower()})
    return "", 204
