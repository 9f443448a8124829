from datetime import datetime

import click
from flask import Flask, current_app
from flask.cli import with_appcontext

from .products import display_name
from .storage import get_db

seed_products = [
    {
        "categoria": "Consola",
        "marca": "Sony",
        "modelo": "PlayStation 5 Slim",
        "precio": 499.99,
        "descripcion": "Next generation console with an ultra fast SSD and 4K gaming at up to 120 fps.",
        "imagenes": ["https://images.example.com/ps5-slim.jpg"],
        "stock": 12,
        "destacado": True,
        "caracteristicas": ["1 TB SSD", "Ray tracing", "DualSense controller"],
    },
    {
        "categoria": "Consola",
        "marca": "Nintendo",
        "modelo": "Switch OLED",
        "precio": 349.99,
        "descripcion": "Hybrid console with a vibrant 7 inch OLED screen and enhanced audio.",
        "imagenes": ["https://images.example.com/switch-oled.jpg"],
        "stock": 20,
        "caracteristicas": ["7 inch OLED", "64 GB storage", "Dock with LAN port"],
    },
    {
        "categoria": "Laptop",
        "marca": "Apple",
        "modelo": "MacBook Air M3",
        "precio": 1099.0,
        "descripcion": "Thin and light laptop powered by the M3 chip with all day battery life.",
        "imagenes": ["https://images.example.com/macbook-air-m3.jpg"],
        "stock": 8,
        "destacado": True,
        "caracteristicas": ["13.6 inch Liquid Retina", "8 GB unified memory", "256 GB SSD"],
    },
    {
        "categoria": "Laptop",
        "marca": "Lenovo",
        "modelo": "Legion 5 Pro",
        "precio": 1399.0,
        "descripcion": "Gaming laptop with a 16 inch 165 Hz display and RTX graphics.",
        "imagenes": ["https://images.example.com/legion-5-pro.jpg"],
        "stock": 5,
        "caracteristicas": ["Ryzen 7", "RTX 4060", "16 GB RAM"],
    },
    {
        "categoria": "Accesorio",
        "marca": "Logitech",
        "modelo": "MX Master 3S",
        "precio": 99.99,
        "descripcion": "Ergonomic wireless mouse with quiet clicks and 8K DPI tracking.",
        "imagenes": ["https://images.example.com/mx-master-3s.jpg"],
        "stock": 40,
        "caracteristicas": ["Bluetooth", "USB-C charging", "MagSpeed scroll wheel"],
    },
    {
        "categoria": "Accesorio",
        "marca": "Sony",
        "modelo": "WH-1000XM5",
        "precio": 399.99,
        "descripcion": "Wireless noise cancelling headphones with 30 hours of battery life.",
        "imagenes": ["https://images.example.com/wh-1000xm5.jpg"],
        "stock": 15,
        "caracteristicas": ["Active noise cancelling", "Multipoint", "Speak to chat"],
    },
]


def insert_seed_products(db, replace: bool = False) -> int:
    if replace:
        db.products.delete_many({})
    elif db.products.count_documents({}) > 0:
        return 0

    timestamp = datetime.utcnow()
    documents = []
    for product in seed_products:
        documents.append(
            {
                "categoria": product["categoria"],
                "marca": product["marca"],
                "modelo": product["modelo"],
                "nombreCompleto": display_name(product["marca"], product["modelo"]),
                "precio": float(product.get("precio", 0) or 0),
                "descripcion": product.get("descripcion", ""),
                "imagenes": list(product.get("imagenes", [])),
                "stock": product.get("stock", 5),
                "disponible": product.get("disponible", True),
                "destacado": product.get("destacado", False),
                "caracteristicas": list(product.get("caracteristicas", [])),
                "createdAt": timestamp,
                "updatedAt": timestamp,
            }
        )

    db.products.insert_many(documents)
    return len(documents)


@click.command("seed-products")
@click.option("--replace", is_flag=True, help="Delete existing products first.")
@with_appcontext
def seed_products_command(replace: bool):
    """Load the built-in catalogue into the products collection."""
    inserted = insert_seed_products(get_db(), replace=replace)
    if inserted:
        current_app.logger.info("Inserted %s seed products", inserted)
        click.echo(f"Inserted {inserted} products.")
    else:
        click.echo("Products collection is not empty; nothing inserted.")


def register_commands(app: Flask) -> None:
    app.cli.add_command(seed_products_command)
