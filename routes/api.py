"""Catalog, cart and checkout API routes."""

from __future__ import annotations

from typing import Any, Dict

from flask import Blueprint, current_app, jsonify, request

from storefront.services.pricing import calculate_totals
from storefront.utils.dto import present_cart, present_order, present_product, present_totals

from .auth import current_user_id


api_bp = Blueprint("storefront_api", __name__, url_prefix="/api")

CHECKOUT_ADDRESS_KEYS = (
    "full_name",
    "address_line1",
    "address_line2",
    "city",
    "state",
    "postal_code",
    "country",
    "phone",
)


def _components() -> Dict[str, Any]:
    return current_app.extensions["storefront_components"]


def _config():
    return current_app.config["STOREFRONT_CONFIG"]


def _flag(name: str, default: bool) -> bool:
    raw = request.args.get(name)
    if raw is None:
        return default
    return raw.strip().lower() in {"1", "true", "yes", "on"}


@api_bp.get("/products")
def list_products():
    result = _components()["catalog"].list_products(
        search=request.args.get("q"),
        category=request.args.get("category"),
        featured_first=_flag("featured_first", True),
        page=request.args.get("page", 1),
        page_size=request.args.get("page_size", 20),
    )
    result["items"] = [present_product(p) for p in result["items"]]
    return jsonify(result)


@api_bp.get("/products/<product_id>")
def get_product(product_id: str):
    product = _components()["catalog"].get_product(product_id)
    if not product:
        return jsonify({"status": "error", "message": "product not found"}), 404
    return jsonify(present_product(product))


@api_bp.get("/categories")
def list_categories():
    return jsonify({"categories": _components()["catalog"].list_categories()})


@api_bp.get("/cart")
def get_cart():
    cart = _components()["cart"].get_cart(user_id=current_user_id())
    return jsonify(present_cart(cart))


@api_bp.get("/cart/totals")
def cart_totals():
    store = _config().store
    cart = _components()["cart"].get_cart(user_id=current_user_id())
    totals = calculate_totals(cart["items"], store.tax_rate, store.shipping_flat)
    payload = present_totals(totals.to_dict())
    payload["currency"] = store.currency
    return jsonify(payload)


@api_bp.post("/cart")
def add_to_cart():
    payload = request.get_json(silent=True) or {}
    cart_service = _components()["cart"]
    result = cart_service.add_item(
        user_id=current_user_id(),
        product_id=str(payload.get("product_id") or "").strip(),
        quantity=payload.get("quantity", 1),
    )
    result["cart"] = present_cart(cart_service.get_cart(user_id=current_user_id()))
    return jsonify(result), 201


@api_bp.patch("/cart/<item_id>")
def update_cart_item(item_id: str):
    payload = request.get_json(silent=True) or {}
    cart_service = _components()["cart"]
    result = cart_service.update_quantity(
        user_id=current_user_id(),
        item_id=item_id,
        quantity=payload.get("quantity"),
    )
    result["cart"] = present_cart(cart_service.get_cart(user_id=current_user_id()))
    return jsonify(result)


@api_bp.delete("/cart/<item_id>")
def remove_cart_item(item_id: str):
    cart_service = _components()["cart"]
    cart_service.remove_item(user_id=current_user_id(), item_id=item_id)
    return jsonify({"status": "removed", "cart": present_cart(cart_service.get_cart(user_id=current_user_id()))})


@api_bp.delete("/cart")
def clear_cart():
    removed = _components()["cart"].clear(user_id=current_user_id())
    return jsonify({"status": "cleared", "removed": removed})


@api_bp.post("/checkout")
def checkout():
    # card fields may be posted but are never read or stored
    payload = request.get_json(silent=True) or {}
    address = {k: payload.get(k) for k in CHECKOUT_ADDRESS_KEYS}
    order = _components()["orders"].checkout(user_id=current_user_id(), address=address)
    return jsonify(present_order(order)), 201


@api_bp.get("/orders")
def list_orders():
    orders = _components()["orders"].list_orders(user_id=current_user_id())
    return jsonify({"orders": [present_order(o) for o in orders]})


@api_bp.get("/orders/<order_id>")
def get_order(order_id: str):
    order = _components()["orders"].get_order(user_id=current_user_id(), order_id=order_id)
    return jsonify(present_order(order))
