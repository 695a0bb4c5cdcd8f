"""Admin panel routes: product and category CRUD."""

from __future__ import annotations

from flask import Blueprint, current_app, jsonify, request, session

from storefront.utils.dto import present_product


admin_bp = Blueprint("storefront_admin", __name__, url_prefix="/admin")

SESSION_ADMIN_KEY = "storefront_admin"


def _admin_service():
    return current_app.extensions["storefront_components"]["admin"]


def _config():
    return current_app.config["STOREFRONT_CONFIG"]


def _is_authenticated() -> bool:
    return bool(session.get(SESSION_ADMIN_KEY))


@admin_bp.before_request
def guard_private_routes():
    if request.endpoint and request.endpoint.startswith("storefront_admin."):
        public = {"storefront_admin.login"}
        if request.endpoint not in public and not _is_authenticated():
            return jsonify({"status": "error", "message": "admin sign in required"}), 401
    return None


@admin_bp.post("/login")
def login():
    payload = request.get_json(silent=True) or {}
    username = str(payload.get("username") or "").strip()
    password = str(payload.get("password") or "").strip()
    cfg = _config()
    if username == cfg.admin_username and password == cfg.admin_password:
        session[SESSION_ADMIN_KEY] = True
        return jsonify({"status": "ok"})
    return jsonify({"status": "error", "message": "wrong username or password"}), 401


@admin_bp.post("/logout")
def logout():
    session.pop(SESSION_ADMIN_KEY, None)
    return jsonify({"status": "ok"})


@admin_bp.get("/products")
def list_products():
    products = [present_product(p) for p in _admin_service().list_products()]
    return jsonify({"products": products})


@admin_bp.post("/products")
def create_product():
    product = _admin_service().create_product(request.get_json(silent=True) or {})
    return jsonify(present_product(product)), 201


@admin_bp.put("/products/<product_id>")
def update_product(product_id: str):
    product = _admin_service().update_product(product_id, request.get_json(silent=True) or {})
    return jsonify(present_product(product))


@admin_bp.delete("/products/<product_id>")
def delete_product(product_id: str):
    if not _admin_service().delete_product(product_id):
        return jsonify({"status": "error", "message": "product not found"}), 404
    return jsonify({"status": "ok"})


@admin_bp.get("/categories")
def list_categories():
    return jsonify({"categories": _admin_service().list_categories()})


@admin_bp.post("/categories")
def create_category():
    payload = request.get_json(silent=True) or {}
    category = _admin_service().create_category(str(payload.get("name") or ""))
    return jsonify(category), 201


@admin_bp.delete("/categories/<category_id>")
def delete_category(category_id: str):
    if not _admin_service().delete_category(category_id):
        return jsonify({"status": "error", "message": "category not found"}), 404
    return jsonify({"status": "ok"})
