"""End-to-end check against a running server.

    python -m backend.smoke_check http://localhost:4000
"""
import json
import sys
from typing import Dict, Optional

import requests

DEFAULT_BASE_URL = "http://localhost:4000"


def run_smoke_check(
    base_url: str = DEFAULT_BASE_URL,
    email: str = "smoke-test@example.com",
    password: str = "smoke-test-password",
    session: Optional[requests.Session] = None,
) -> Dict[str, int]:
    session = session or requests.Session()
    base_url = base_url.rstrip("/")
    statuses: Dict[str, int] = {}

    response = session.get(f"{base_url}/api/health")
    statuses["health"] = response.status_code

    response = session.post(
        f"{base_url}/api/auth/register",
        json={"name": "Smoke Test", "email": email, "password": password},
    )
    statuses["register"] = response.status_code

    response = session.post(
        f"{base_url}/api/auth/login", json={"email": email, "password": password}
    )
    statuses["login"] = response.status_code
    if response.status_code != 200:
        return statuses
    credentials = response.json()
    headers = {
        "Authorization": f"Bearer {credentials['token']}",
        "x-token": credentials["xToken"],
    }

    response = session.get(f"{base_url}/api/products")
    statuses["products"] = response.status_code
    products = response.json() if response.status_code == 200 else []

    if products:
        product = products[0]
        payload = {
            "items": [
                {
                    "productId": product["id"],
                    "name": product.get("nombreCompleto", ""),
                    "price": product.get("precio", 0),
                    "quantity": 1,
                }
            ],
            "total": product.get("precio", 0),
            "paymentMethod": "paypal",
        }
        response = session.post(f"{base_url}/api/orders", json=payload, headers=headers)
        statuses["create_order"] = response.status_code

    response = session.get(f"{base_url}/api/orders", headers=headers)
    statuses["list_orders"] = response.status_code
    return statuses


if __name__ == "__main__":
    url = sys.argv[1] if len(sys.argv) > 1 else DEFAULT_BASE_URL
    try:
        print(f"Running smoke check against {url}...")
        print(json.dumps(run_smoke_check(url), indent=2))
    except requests.RequestException as e:
        print(f"Error: {e}")
        sys.exit(1)
