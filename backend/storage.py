import atexit
from datetime import datetime

from bson import ObjectId
from bson.errors import InvalidId
from flask import Flask, current_app
from flask_pymongo import PyMongo
from werkzeug.exceptions import BadRequest

DATABASE_EXTENSION_KEY = "techstore_db"


def open_database(app: Flask):
    """Connect to MONGO_URI and register the client for shutdown."""
    mongo = PyMongo(app)
    if mongo.db is None:
        raise RuntimeError(
            "MONGO_URI must include a database name, e.g. mongodb://localhost:27017/ecommerceDB"
        )
    atexit.register(mongo.cx.close)
    return mongo.db


def ensure_indexes(app: Flask, db) -> None:
    try:
        db.users.create_index("email", unique=True)
    except Exception as exc:
        app.logger.warning("Unable to ensure unique index for user emails: %s", exc)

    try:
        db.products.create_index([("categoria", 1), ("marca", 1)])
        db.products.create_index("precio")
    except Exception as exc:
        app.logger.warning("Unable to ensure indexes for products: %s", exc)

    try:
        db.orders.create_index([("user", 1), ("createdAt", -1)])
    except Exception as exc:
        app.logger.warning("Unable to ensure indexes for orders: %s", exc)


def get_db():
    return current_app.extensions[DATABASE_EXTENSION_KEY]


def parse_object_id(value, label: str = "identifier") -> ObjectId:
    try:
        return ObjectId(str(value))
    except (InvalidId, TypeError):
        raise BadRequest(f"Invalid {label}.")


def format_timestamp(value):
    return value.isoformat() + "Z" if isinstance(value, datetime) else None
