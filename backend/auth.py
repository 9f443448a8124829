from datetime import datetime

import bcrypt
from flask import Blueprint, current_app, jsonify, request
from flask_jwt_extended import get_jwt_identity, jwt_required
from pymongo.errors import DuplicateKeyError
from werkzeug.exceptions import BadRequest, Conflict, NotFound

from .payloads import read_payload
from .schemas import LoginInput, RegisterInput
from .security import issue_access_token, issue_order_token
from .storage import get_db, parse_object_id
from .uploads import has_file, remove_image, save_image

auth_bp = Blueprint("auth", __name__, url_prefix="/api/auth")


def serialize_user(user_document):
    if not user_document:
        return {}
    return {
        "id": str(user_document.get("_id")),
        "name": user_document.get("name", ""),
        "email": user_document.get("email", ""),
        "role": user_document.get("role", "user"),
        "profileImage": user_document.get("profileImage"),
    }


def hash_password(password: str) -> bytes:
    rounds = current_app.config["BCRYPT_ROUNDS"]
    return bcrypt.hashpw(password.encode("utf-8"), bcrypt.gensalt(rounds=rounds))


def check_password(password: str, hashed) -> bool:
    if isinstance(hashed, str):
        hashed = hashed.encode("utf-8")
    try:
        return bcrypt.checkpw(password.encode("utf-8"), hashed)
    except (TypeError, ValueError):
        return False


def register_user(db, payload, profile_image=None):
    data = RegisterInput.model_validate(payload)

    if db.users.find_one({"email": data.email}):
        raise Conflict("An account with this email already exists.")

    profile_image_path = None
    if has_file(profile_image):
        profile_image_path = save_image(profile_image, "users")

    user_document = {
        "name": data.name,
        "email": data.email,
        "password": hash_password(data.password),
        "role": data.role,
        "profileImage": profile_image_path,
        "createdAt": datetime.utcnow(),
    }

    try:
        result = db.users.insert_one(user_document)
    except DuplicateKeyError:
        remove_image(profile_image_path)
        raise Conflict("An account with this email already exists.")

    user_document["_id"] = result.inserted_id
    current_app.logger.info("Registered user %s", data.email)
    return user_document


def authenticate_user(db, payload):
    data = LoginInput.model_validate(payload)

    user = db.users.find_one({"email": data.email})
    if not user:
        raise BadRequest("User not found.")

    if not check_password(data.password, user.get("password")):
        raise BadRequest("Incorrect password.")

    return {
        "token": issue_access_token(user),
        "xToken": issue_order_token(user["_id"]),
        "user": serialize_user(user),
    }


def update_profile_image(db, user_id, image_file):
    if not has_file(image_file):
        raise BadRequest("No image was uploaded.")

    object_id = parse_object_id(user_id, "user identifier")
    user = db.users.find_one({"_id": object_id})
    if not user:
        raise NotFound("User not found.")

    new_path = save_image(image_file, "users")
    db.users.update_one({"_id": object_id}, {"$set": {"profileImage": new_path}})

    previous_path = user.get("profileImage")
    if previous_path and previous_path != new_path:
        remove_image(previous_path)

    user["profileImage"] = new_path
    return user


@auth_bp.route("/register", methods=["POST"])
def register():
    user = register_user(
        get_db(), read_payload(), request.files.get("profileImage")
    )
    return (
        jsonify(
            {"message": "User registered successfully.", "user": serialize_user(user)}
        ),
        201,
    )


@auth_bp.route("/login", methods=["POST"])
def login():
    return jsonify(authenticate_user(get_db(), read_payload()))


@auth_bp.route("/profile-image", methods=["PUT"])
@jwt_required()
def change_profile_image():
    user = update_profile_image(
        get_db(), get_jwt_identity(), request.files.get("profileImage")
    )
    return jsonify(
        {
            "message": "Profile image updated.",
            "profileImage": user.get("profileImage"),
        }
    )
