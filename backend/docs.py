"""OpenAPI document served at ``/`` and ``/openapi.json``."""
from flask import Blueprint, current_app, jsonify

from .schemas import LoginInput, OrderCreate, ProductCreate, ProductUpdate, RegisterInput

docs_bp = Blueprint("docs", __name__)

BEARER = [{"bearerAuth": []}]
BEARER_AND_X_TOKEN = [{"bearerAuth": [], "xToken": []}]

PRODUCT_FILTER_PARAMETERS = [
    {"in": "query", "name": "categoria", "schema": {"type": "string"}},
    {"in": "query", "name": "marca", "schema": {"type": "string"}},
    {"in": "query", "name": "minPrice", "schema": {"type": "number"}},
    {"in": "query", "name": "maxPrice", "schema": {"type": "number"}},
]

SEARCH_PARAMETERS = PRODUCT_FILTER_PARAMETERS + [
    {"in": "query", "name": "modelo", "schema": {"type": "string"}},
    {"in": "query", "name": "sortBy", "schema": {"type": "string", "default": "precio"}},
    {
        "in": "query",
        "name": "sortOrder",
        "schema": {"type": "string", "enum": ["asc", "desc"], "default": "asc"},
    },
    {"in": "query", "name": "page", "schema": {"type": "integer", "default": 1}},
    {"in": "query", "name": "limit", "schema": {"type": "integer", "default": 10}},
]

PRODUCT_ID_PARAMETER = {
    "in": "path",
    "name": "id",
    "required": True,
    "schema": {"type": "string"},
}


def json_body(schema_name: str):
    return {
        "required": True,
        "content": {
            "application/json": {
                "schema": {"$ref": f"#/components/schemas/{schema_name}"}
            }
        },
    }


def operation(summary, tag, responses, security=None, **extra):
    spec = {
        "summary": summary,
        "tags": [tag],
        "responses": {str(code): {"description": text} for code, text in responses},
    }
    if security:
        spec["security"] = security
    spec.update(extra)
    return spec


def build_openapi_document(version: str):
    schemas = {}
    for model in (RegisterInput, LoginInput, ProductCreate, ProductUpdate, OrderCreate):
        schema = model.model_json_schema(ref_template="#/components/schemas/{model}")
        schemas.update(schema.pop("$defs", {}))
        schemas[model.__name__] = schema
    admin_errors = [(401, "Unauthorized"), (403, "Admin role required")]

    paths = {
        "/api/auth/register": {
            "post": operation(
                "Register a user",
                "Auth",
                [(201, "User created"), (400, "Invalid input"), (409, "Email taken")],
                requestBody=json_body("RegisterInput"),
            )
        },
        "/api/auth/login": {
            "post": operation(
                "Log in and receive a bearer token and an order token",
                "Auth",
                [(200, "Tokens issued"), (400, "Unknown email or wrong password")],
                requestBody=json_body("LoginInput"),
            )
        },
        "/api/auth/profile-image": {
            "put": operation(
                "Replace the caller's profile image (multipart field profileImage)",
                "Auth",
                [(200, "Image updated"), (400, "No image"), (404, "User not found")],
                security=BEARER,
            )
        },
        "/api/products": {
            "get": operation(
                "List products sorted by price",
                "Products",
                [(200, "Product list")],
                parameters=PRODUCT_FILTER_PARAMETERS,
            ),
            "post": operation(
                "Create a product",
                "Products",
                [(201, "Product created"), (400, "Invalid input")] + admin_errors,
                security=BEARER,
                requestBody=json_body("ProductCreate"),
            ),
        },
        "/api/products/search/advanced": {
            "get": operation(
                "Paginated product search",
                "Products",
                [(200, "Search results"), (400, "Invalid parameters")],
                parameters=SEARCH_PARAMETERS,
            )
        },
        "/api/products/{id}": {
            "get": operation(
                "Fetch a product",
                "Products",
                [(200, "Product"), (404, "Product not found")],
                parameters=[PRODUCT_ID_PARAMETER],
            ),
            "put": operation(
                "Update a product",
                "Products",
                [(200, "Product updated"), (404, "Product not found")] + admin_errors,
                security=BEARER,
                parameters=[PRODUCT_ID_PARAMETER],
                requestBody=json_body("ProductUpdate"),
            ),
            "delete": operation(
                "Delete a product",
                "Products",
                [(200, "Product deleted"), (404, "Product not found")] + admin_errors,
                security=BEARER,
                parameters=[PRODUCT_ID_PARAMETER],
            ),
        },
        "/api/orders": {
            "get": operation(
                "List the caller's orders, newest first",
                "Orders",
                [(200, "Orders"), (401, "Unauthorized")],
                security=BEARER_AND_X_TOKEN,
            ),
            "post": operation(
                "Create an order",
                "Orders",
                [(201, "Order created"), (400, "Invalid input"), (401, "Unauthorized")],
                security=BEARER_AND_X_TOKEN,
                requestBody=json_body("OrderCreate"),
            ),
        },
        "/api/health": {
            "get": operation("Liveness check", "Health", [(200, "Service is up")])
        },
    }

    return {
        "openapi": "3.0.0",
        "info": {
            "title": "Tech Store API",
            "version": version,
            "description": "E-commerce API for a technology store.",
        },
        "paths": paths,
        "components": {
            "schemas": schemas,
            "securitySchemes": {
                "bearerAuth": {"type": "http", "scheme": "bearer", "bearerFormat": "JWT"},
                "xToken": {"type": "apiKey", "in": "header", "name": "x-token"},
            },
        },
    }


@docs_bp.route("/", methods=["GET"])
@docs_bp.route("/openapi.json", methods=["GET"])
def openapi_document():
    return jsonify(build_openapi_document(current_app.config["API_VERSION"]))
