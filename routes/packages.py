from decimal import Decimal, InvalidOperation

from flask import Blueprint, request, jsonify, g
from sqlalchemy.exc import IntegrityError

from models import db
from models.booking import Booking
from models.package import Package
from security.rbac import require_admin
from utils.audit import log_event

package_bp = Blueprint("packages", __name__, url_prefix="/packages")

_TEXT_FIELDS = {
    "name": "name",
    "namePt": "name_pt",
    "description": "description",
    "descriptionPt": "description_pt",
    "stripeProductId": "stripe_product_id",
}


def money_str(value) -> str:
    return f"{Decimal(str(value or 0)):.2f}"


def package_to_json(p: Package) -> dict:
    return {
        "id": p.id,
        "name": p.name,
        "namePt": p.name_pt,
        "description": p.description,
        "descriptionPt": p.description_pt,
        "totalPrice": money_str(p.total_price),
        "depositPrice": money_str(p.deposit_price),
        "active": p.active,
        "stripeProductId": p.stripe_product_id,
        "createdAt": p.created_at.isoformat() if p.created_at else None,
        "updatedAt": p.updated_at.isoformat() if p.updated_at else None,
    }


def _parse_price(value, field):
    """Returns (Decimal, None) or (None, error message)."""
    if value is None or isinstance(value, bool):
        return None, f"{field} must be a number"
    try:
        price = Decimal(str(value)).quantize(Decimal("0.01"))
    except InvalidOperation:
        return None, f"{field} must be a number"
    if not price.is_finite() or price < 0:
        return None, f"{field} must be zero or greater"
    return price, None


def _name_taken(name: str, exclude_id=None) -> bool:
    q = Package.query.filter(Package.name == name)
    if exclude_id:
        q = q.filter(Package.id != exclude_id)
    return q.first() is not None


@package_bp.get("")
def list_packages():
    rows = (
        Package.query
        .filter(Package.active.is_(True))
        .order_by(Package.total_price.asc())
        .all()
    )
    return jsonify([package_to_json(p) for p in rows]), 200


@package_bp.get("/<package_id>")
def get_package(package_id: str):
    pkg = db.session.get(Package, package_id)
    if not pkg:
        return jsonify(error="Package not found"), 404
    return jsonify(package_to_json(pkg)), 200


@package_bp.post("")
@require_admin
def create_package():
    data = request.get_json(silent=True) or {}
    name = (data.get("name") or "").strip()
    if not name or data.get("totalPrice") is None or data.get("depositPrice") is None:
        return jsonify(error="Name, totalPrice and depositPrice are required"), 400

    total, error = _parse_price(data.get("totalPrice"), "totalPrice")
    if error:
        return jsonify(error=error), 400
    deposit, error = _parse_price(data.get("depositPrice"), "depositPrice")
    if error:
        return jsonify(error=error), 400
    if deposit > total:
        return jsonify(error="depositPrice cannot be greater than totalPrice"), 400

    if _name_taken(name):
        return jsonify(error="A package with this name already exists"), 409

    pkg = Package(
        name=name,
        name_pt=(data.get("namePt") or "").strip() or None,
        description=(data.get("description") or "").strip() or None,
        description_pt=(data.get("descriptionPt") or "").strip() or None,
        total_price=total,
        deposit_price=deposit,
        stripe_product_id=(data.get("stripeProductId") or "").strip() or None,
        active=True,
    )
    db.session.add(pkg)
    try:
        db.session.commit()
    except IntegrityError:
        db.session.rollback()
        return jsonify(error="A package with this name already exists"), 409

    log_event("PACKAGE_CREATE", admin_email=g.admin_email, entity="package", entity_id=pkg.id)
    return jsonify(package_to_json(pkg)), 201


@package_bp.put("/<package_id>")
@require_admin
def update_package(package_id: str):
    pkg = db.session.get(Package, package_id)
    if not pkg:
        return jsonify(error="Package not found"), 404

    data = request.get_json(silent=True) or {}

    total = pkg.total_price
    deposit = pkg.deposit_price
    if "totalPrice" in data:
        total, error = _parse_price(data.get("totalPrice"), "totalPrice")
        if error:
            return jsonify(error=error), 400
    if "depositPrice" in data:
        deposit, error = _parse_price(data.get("depositPrice"), "depositPrice")
        if error:
            return jsonify(error=error), 400
    if Decimal(str(deposit)) > Decimal(str(total)):
        return jsonify(error="depositPrice cannot be greater than totalPrice"), 400

    if "name" in data:
        name = (data.get("name") or "").strip()
        if not name:
            return jsonify(error="name cannot be empty"), 400
        if _name_taken(name, exclude_id=pkg.id):
            return jsonify(error="A package with this name already exists"), 409

    if "active" in data and not isinstance(data.get("active"), bool):
        return jsonify(error="active must be a boolean"), 400

    changed = []
    for key, attr in _TEXT_FIELDS.items():
        if key in data:
            value = (data.get(key) or "").strip() or None
            setattr(pkg, attr, value)
            changed.append(key)
    if "totalPrice" in data:
        pkg.total_price = total
        changed.append("totalPrice")
    if "depositPrice" in data:
        pkg.deposit_price = deposit
        changed.append("depositPrice")
    if "active" in data:
        pkg.active = data["active"]
        changed.append("active")

    try:
        db.session.commit()
    except IntegrityError:
        db.session.rollback()
        return jsonify(error="A package with this name already exists"), 409

    log_event("PACKAGE_UPDATE", admin_email=g.admin_email, entity="package", entity_id=pkg.id, metadata={"fields": changed})
    return jsonify(package_to_json(pkg)), 200


@package_bp.delete("/<package_id>")
@require_admin
def delete_package(package_id: str):
    pkg = db.session.get(Package, package_id)
    if not pkg:
        return jsonify(error="Package not found"), 404

    purge = (request.args.get("purge") or "").lower() in ("1", "true", "yes")
    referenced = Booking.query.filter_by(package_id=pkg.id).first() is not None

    if purge and not referenced:
        db.session.delete(pkg)
        try:
            db.session.commit()
            log_event("PACKAGE_PURGE", admin_email=g.admin_email, entity="package", entity_id=package_id)
            return "", 204
        except IntegrityError:
            # a booking landed in between: keep the row
            db.session.rollback()
            pkg = db.session.get(Package, package_id)

    # Soft delete keeps historical bookings pointing at the package
    pkg.active = False
    db.session.commit()

    log_event("PACKAGE_DEACTIVATE", admin_email=g.admin_email, entity="package", entity_id=pkg.id)
    return "", 204
