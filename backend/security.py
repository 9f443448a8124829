"""Token issuing and request authorization.

Two token flavours exist:

* the bearer access token, sent as ``Authorization: Bearer <token>``, which
  carries ``id``, ``name`` and ``role`` and expires after
  ``JWT_ACCESS_TOKEN_EXPIRES`` (one hour);
* the order token, sent in the ``x-token`` header, which carries only
  ``uid`` plus an ``order`` scope and does not expire. It is refused as a
  bearer token.
"""
from functools import wraps

from flask import current_app, g, request
from flask_jwt_extended import create_access_token, decode_token, get_jwt
from flask_jwt_extended.exceptions import JWTExtendedException
from jwt.exceptions import PyJWTError
from werkzeug.exceptions import Forbidden, Unauthorized

ORDER_TOKEN_HEADER = "x-token"
ORDER_TOKEN_SCOPE = "order"


def issue_access_token(user_document) -> str:
    user_id = str(user_document["_id"])
    return create_access_token(
        identity=user_id,
        additional_claims={
            "id": user_id,
            "name": user_document.get("name", ""),
            "role": user_document.get("role", "user"),
        },
    )


def issue_order_token(user_id) -> str:
    uid = str(user_id)
    return create_access_token(
        identity=uid,
        additional_claims={"uid": uid, "scope": ORDER_TOKEN_SCOPE},
        expires_delta=False,
    )


def verify_order_token(token: str) -> str:
    if not token:
        raise Unauthorized("No token provided.")

    try:
        claims = decode_token(token)
    except (PyJWTError, JWTExtendedException) as exc:
        current_app.logger.warning("Rejected order token: %s", exc)
        raise Unauthorized("Invalid token.")

    uid = claims.get("uid")
    if not uid or claims.get("scope") != ORDER_TOKEN_SCOPE:
        raise Unauthorized("Invalid token.")
    return str(uid)


def current_claims():
    try:
        return get_jwt()
    except RuntimeError:
        return None


def role_required(*roles: str):
    """Reject the request unless the verified bearer token's role is in ``roles``.

    Must be stacked below ``jwt_required()`` so the token has already been
    verified when this runs.
    """
    allowed = set(roles)

    def decorator(view):
        @wraps(view)
        def wrapper(*args, **kwargs):
            claims = current_claims()
            if not claims:
                raise Unauthorized("Access denied. No token provided.")
            if claims.get("role") not in allowed:
                raise Forbidden("Access denied. You do not have permission.")
            return view(*args, **kwargs)

        return wrapper

    return decorator


def x_token_required(view):
    @wraps(view)
    def wrapper(*args, **kwargs):
        g.order_uid = verify_order_token(request.headers.get(ORDER_TOKEN_HEADER, ""))
        return view(*args, **kwargs)

    return wrapper


def is_bearer_token(jwt_data) -> bool:
    return jwt_data.get("scope") != ORDER_TOKEN_SCOPE and "role" in jwt_data


def register_token_checks(jwt) -> None:
    """Keep order tokens out of ``Authorization: Bearer``; they never expire."""

    @jwt.token_verification_loader
    def verify_bearer_claims(jwt_header, jwt_data):
        return is_bearer_token(jwt_data)
