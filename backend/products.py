import math
import re
from datetime import datetime
from typing import Dict, List

from flask import Blueprint, current_app, jsonify, request
from flask_jwt_extended import get_jwt_identity, jwt_required
from pydantic import ValidationError
from pymongo import ASCENDING, DESCENDING
from werkzeug.exceptions import NotFound

from .payloads import read_payload
from .schemas import ProductCreate, ProductFilters, ProductSearch, ProductUpdate
from .security import role_required
from .storage import format_timestamp, get_db, parse_object_id
from .uploads import remove_image, save_images

products_bp = Blueprint("products", __name__, url_prefix="/api/products")

PRODUCT_LIST_FIELDS = ("imagenes", "caracteristicas")


def display_name(brand, model) -> str:
    return f"{brand or ''} {model or ''}".strip()


def product_images(product_document) -> List[str]:
    images: List[str] = []
    raw_images = product_document.get("imagenes")
    if isinstance(raw_images, list):
        images = [str(image) for image in raw_images if image]

    # Older catalogue entries carry a single imageUrl.
    legacy_image = product_document.get("imageUrl")
    if legacy_image and str(legacy_image) not in images:
        images.insert(0, str(legacy_image))
    return images


def serialize_product(product_document) -> Dict:
    try:
        price_value = float(product_document.get("precio", 0) or 0)
    except (TypeError, ValueError):
        price_value = 0.0

    brand = product_document.get("marca", "")
    model = product_document.get("modelo", "")
    product_id = str(product_document.get("_id"))
    return {
        "_id": product_id,
        "id": product_id,
        "categoria": product_document.get("categoria", ""),
        "marca": brand,
        "modelo": model,
        "nombreCompleto": product_document.get("nombreCompleto")
        or display_name(brand, model),
        "precio": price_value,
        "descripcion": product_document.get("descripcion", ""),
        "imagenes": product_images(product_document),
        "stock": product_document.get("stock", 5),
        "disponible": product_document.get("disponible", True),
        "destacado": product_document.get("destacado", False),
        "caracteristicas": product_document.get("caracteristicas") or [],
        "createdAt": format_timestamp(product_document.get("createdAt")),
        "updatedAt": format_timestamp(product_document.get("updatedAt")),
    }


def build_price_filter(filters: ProductFilters) -> Dict:
    price_filter = {}
    if filters.min_price is not None:
        price_filter["$gte"] = filters.min_price
    if filters.max_price is not None:
        price_filter["$lte"] = filters.max_price
    return price_filter


def contains_ignore_case(value: str) -> Dict:
    return {"$regex": re.escape(value), "$options": "i"}


def list_products(db, args) -> List[Dict]:
    filters = ProductFilters.model_validate(args)

    query: Dict[str, object] = {}
    if filters.category:
        query["categoria"] = filters.category
    if filters.brand:
        query["marca"] = filters.brand
    price_filter = build_price_filter(filters)
    if price_filter:
        query["precio"] = price_filter

    cursor = db.products.find(query).sort([("precio", ASCENDING), ("_id", ASCENDING)])
    return [serialize_product(document) for document in cursor]


def search_products(db, args) -> Dict:
    search = ProductSearch.model_validate(args)

    query: Dict[str, object] = {}
    if search.category:
        query["categoria"] = search.category
    if search.brand:
        query["marca"] = contains_ignore_case(search.brand)
    if search.model:
        query["modelo"] = contains_ignore_case(search.model)
    price_filter = build_price_filter(search)
    if price_filter:
        query["precio"] = price_filter

    direction = ASCENDING if search.sort_order == "asc" else DESCENDING
    total = db.products.count_documents(query)
    cursor = (
        db.products.find(query)
        .sort([(search.sort_by, direction), ("_id", ASCENDING)])
        .skip((search.page - 1) * search.limit)
        .limit(search.limit)
    )

    return {
        "total": total,
        "page": search.page,
        "totalPages": math.ceil(total / search.limit),
        "products": [serialize_product(document) for document in cursor],
    }


def release_images(db, paths):
    """Remove uploaded files that no remaining product still references."""
    for path in paths:
        if db.products.count_documents(
            {"$or": [{"imagenes": path}, {"imageUrl": path}]}
        ):
            continue
        remove_image(path)


def fetch_product(db, product_id):
    object_id = parse_object_id(product_id, "product identifier")
    product_document = db.products.find_one({"_id": object_id})
    if not product_document:
        raise NotFound("Product not found.")
    return product_document


def create_product(db, payload, image_files=()):
    payload = dict(payload)
    saved_paths = save_images(image_files, "products")
    if saved_paths:
        existing = payload.get("imagenes") or []
        if isinstance(existing, str):
            existing = [existing]
        payload["imagenes"] = list(existing) + saved_paths

    try:
        data = ProductCreate.model_validate(payload)
    except ValidationError:
        remove_image(saved_paths)
        raise

    timestamp = datetime.utcnow()
    product_document = data.model_dump(by_alias=True)
    product_document.update(
        {
            "nombreCompleto": display_name(data.brand, data.model),
            "createdAt": timestamp,
            "updatedAt": timestamp,
        }
    )

    result = db.products.insert_one(product_document)
    product_document["_id"] = result.inserted_id
    return product_document


def update_product(db, product_id, payload):
    product_document = fetch_product(db, product_id)
    data = ProductUpdate.model_validate(payload)

    changes = data.model_dump(by_alias=True, exclude_unset=True, exclude_none=True)
    brand = changes.get("marca", product_document.get("marca"))
    model = changes.get("modelo", product_document.get("modelo"))
    changes["nombreCompleto"] = display_name(brand, model)
    changes["updatedAt"] = datetime.utcnow()

    db.products.update_one({"_id": product_document["_id"]}, {"$set": changes})
    if "imagenes" in changes:
        dropped = [
            path
            for path in product_images(product_document)
            if path not in changes["imagenes"]
        ]
        release_images(db, dropped)
    return db.products.find_one({"_id": product_document["_id"]})


def delete_product(db, product_id):
    object_id = parse_object_id(product_id, "product identifier")
    product_document = db.products.find_one_and_delete({"_id": object_id})
    if not product_document:
        raise NotFound("Product not found.")
    release_images(db, product_images(product_document))


@products_bp.route("", methods=["GET"])
def get_products():
    return jsonify(list_products(get_db(), request.args.to_dict()))


@products_bp.route("/search/advanced", methods=["GET"])
def advanced_search():
    return jsonify(search_products(get_db(), request.args.to_dict()))


@products_bp.route("/<product_id>", methods=["GET"])
def get_product(product_id: str):
    return jsonify(serialize_product(fetch_product(get_db(), product_id)))


@products_bp.route("", methods=["POST"])
@jwt_required()
@role_required("admin")
def post_product():
    product_document = create_product(
        get_db(),
        read_payload(PRODUCT_LIST_FIELDS),
        request.files.getlist("imagenes"),
    )
    current_app.logger.info(
        "Product %s created by %s", product_document["_id"], get_jwt_identity()
    )
    return jsonify(serialize_product(product_document)), 201


@products_bp.route("/<product_id>", methods=["PUT"])
@jwt_required()
@role_required("admin")
def put_product(product_id: str):
    product_document = update_product(
        get_db(), product_id, read_payload(PRODUCT_LIST_FIELDS)
    )
    return jsonify(serialize_product(product_document))


@products_bp.route("/<product_id>", methods=["DELETE"])
@jwt_required()
@role_required("admin")
def remove_product(product_id: str):
    delete_product(get_db(), product_id)
    current_app.logger.info("Product %s deleted by %s", product_id, get_jwt_identity())
    return jsonify({"message": "Product deleted successfully."})
