from flask import Blueprint, current_app, jsonify, request

from services.notifications import send_contact_email
from utils.validation import clean_str, is_valid_email

contact_bp = Blueprint("contact", __name__)


@contact_bp.post("/contacts")
def post_contact():
    data = request.get_json(silent=True) or {}
    name = clean_str(data.get("name"))
    email = clean_str(data.get("email"))
    message = clean_str(data.get("message"))

    if not name or not email or not message:
        return jsonify(success=False, message="All fields are mandatory (name, email, message)"), 400
    if not is_valid_email(email):
        return jsonify(success=False, message="Invalid email"), 400

    max_length = current_app.config.get("CONTACT_MAX_MESSAGE_LENGTH", 1000)
    if len(message) > max_length:
        return jsonify(success=False, message=f"Message is too long. Maximum length is {max_length} characters."), 400

    ok, error = send_contact_email(name, email, message)
    if not ok:
        current_app.logger.error("Contact email from %s failed: %s", email, error)
        return jsonify(success=False, message="Error sending message. Please try again later."), 500

    return jsonify(success=True, message="Message sent successfully!"), 200


@contact_bp.get("/contacts")
def get_contact():
    return jsonify(message="This endpoint only supports POST requests."), 200
