from flask import Blueprint, request, jsonify, current_app

from models import db
from models.user import User
from security.google import verify_google_credential
from security.password import verify_password
from security.rbac import is_allowed_admin
from security.tokens import issue_token
from utils.audit import log_event

auth_bp = Blueprint("auth", __name__, url_prefix="/auth")


def _forbidden(email: str):
    current_app.logger.warning("Unauthorized login attempt: %s", email)
    log_event("LOGIN_FORBIDDEN", metadata={"email": email})
    return jsonify(error="Access denied: not an admin"), 403


@auth_bp.post("/google")
def google_login():
    data = request.get_json(silent=True) or {}
    credential = data.get("credential")
    if not isinstance(credential, str) or not credential.strip():
        return jsonify(error="Missing credential"), 400

    claims = verify_google_credential(credential.strip())
    email = (claims.get("email") or "").strip().lower()
    if not email:
        return jsonify(error="No email found"), 401
    if not is_allowed_admin(email):
        return _forbidden(email)

    # allow-listed admins are provisioned on first sign-in
    user = User.query.filter_by(email=email).first()
    if not user:
        user = User(email=email, name=claims.get("name"), avatar=claims.get("picture"))
        db.session.add(user)
        db.session.commit()
        log_event("ADMIN_PROVISIONED", admin_email=email, entity="user", entity_id=user.id)

    token = issue_token(user.id, user.email)
    log_event("LOGIN_SUCCESS", admin_email=user.email, entity="user", entity_id=user.id,
              metadata={"method": "google"})
    return jsonify(token=token), 200


@auth_bp.post("/login")
def login():
    data = request.get_json(silent=True) or {}
    email = data.get("email")
    password = data.get("password")

    if not isinstance(email, str) or not isinstance(password, str) or not email.strip() or not password:
        return jsonify(error="email and password are required"), 400
    email = email.strip().lower()

    user = User.query.filter_by(email=email).first()
    if not user or not verify_password(password, user.password_hash):
        log_event("LOGIN_FAIL", metadata={"email": email})
        return jsonify(error="Invalid credentials"), 401

    if not is_allowed_admin(user.email):
        return _forbidden(email)

    token = issue_token(user.id, user.email)
    log_event("LOGIN_SUCCESS", admin_email=user.email, entity="user", entity_id=user.id,
              metadata={"method": "password"})
    return jsonify(token=token), 200
