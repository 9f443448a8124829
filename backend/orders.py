from datetime import datetime
from typing import Dict, List

from bson import ObjectId
from flask import Blueprint, current_app, g, jsonify
from flask_jwt_extended import jwt_required

from .payloads import read_payload
from .schemas import OrderCreate
from .security import x_token_required
from .storage import format_timestamp, get_db, parse_object_id

orders_bp = Blueprint("orders", __name__, url_prefix="/api/orders")


def serialize_order(order_document) -> Dict:
    if not order_document:
        return {}

    items = []
    for item in order_document.get("items") or []:
        if not isinstance(item, dict):
            continue
        items.append(
            {
                "productId": str(item.get("productId", "")),
                "name": item.get("name", ""),
                "price": item.get("price", 0),
                "quantity": item.get("quantity", 1),
            }
        )

    order_id = str(order_document.get("_id"))
    return {
        "_id": order_id,
        "id": order_id,
        "user": str(order_document.get("user", "")),
        "items": items,
        "total": order_document.get("total", 0),
        "paymentMethod": order_document.get("paymentMethod", ""),
        "isPaid": bool(order_document.get("isPaid", False)),
        "paidAt": format_timestamp(order_document.get("paidAt")),
        "createdAt": format_timestamp(order_document.get("createdAt")),
    }


def create_order(db, user_id, payload):
    owner_id = parse_object_id(user_id, "user identifier")
    data = OrderCreate.model_validate(payload)

    # The submitted total is stored as sent; it is not recomputed from the items.
    order_document = {
        "user": owner_id,
        "items": [
            {
                "productId": ObjectId(item.product_id),
                "name": item.name,
                "price": item.price,
                "quantity": item.quantity,
            }
            for item in data.items
        ],
        "total": data.total,
        "paymentMethod": data.payment_method,
        "isPaid": False,
        "paidAt": None,
        "createdAt": datetime.utcnow(),
    }

    result = db.orders.insert_one(order_document)
    order_document["_id"] = result.inserted_id
    current_app.logger.info("Order %s created for user %s", result.inserted_id, owner_id)
    return order_document


def list_orders(db, user_id) -> List[Dict]:
    owner_id = parse_object_id(user_id, "user identifier")
    cursor = db.orders.find({"user": owner_id}).sort(
        [("createdAt", -1), ("_id", -1)]
    )
    return [serialize_order(document) for document in cursor]


@orders_bp.route("", methods=["POST"])
@jwt_required()
@x_token_required
def post_order():
    order_document = create_order(get_db(), g.order_uid, read_payload())
    return jsonify({"ok": True, "order": serialize_order(order_document)}), 201


@orders_bp.route("", methods=["GET"])
@jwt_required()
@x_token_required
def get_orders():
    return jsonify({"ok": True, "orders": list_orders(get_db(), g.order_uid)})
