import traceback

from flask import Flask, jsonify
from flask_jwt_extended import JWTManager
from pydantic import ValidationError
from werkzeug.exceptions import HTTPException


def error_response(message: str, status: int, **extra):
    payload = {"success": False, "message": message}
    payload.update(extra)
    return jsonify(payload), status


def describe_validation_errors(exc: ValidationError):
    messages = []
    for error in exc.errors():
        location = ".".join(str(part) for part in error.get("loc", ()))
        message = error.get("msg", "Invalid value")
        messages.append(f"{location}: {message}" if location else message)
    return messages


def register_jwt_callbacks(jwt: JWTManager) -> None:
    @jwt.unauthorized_loader
    def missing_token(reason: str):
        return error_response("Access denied. Token not provided.", 401, reason=reason)

    @jwt.invalid_token_loader
    def invalid_token(reason: str):
        return error_response("Invalid token.", 401, reason=reason)

    @jwt.expired_token_loader
    def expired_token(jwt_header, jwt_payload):
        return error_response("Token has expired.", 401)

    @jwt.token_verification_failed_loader
    def rejected_token(jwt_header, jwt_payload):
        return error_response("Invalid token.", 401)


def register_error_handlers(app: Flask) -> None:
    @app.errorhandler(ValidationError)
    def handle_validation_error(exc: ValidationError):
        return error_response(
            "Validation error.", 400, errors=describe_validation_errors(exc)
        )

    @app.errorhandler(HTTPException)
    def handle_http_error(exc: HTTPException):
        return error_response(exc.description or exc.name, exc.code or 500)

    @app.errorhandler(Exception)
    def handle_unexpected_error(exc: Exception):
        app.logger.exception("Unhandled error: %s", exc)
        extra = {}
        if app.config.get("ENVIRONMENT") == "development":
            extra["stack"] = "".join(
                traceback.format_exception(type(exc), exc, exc.__traceback__)
            )
        return error_response("Internal server error.", 500, **extra)
