"""Storefront Flask application."""

from __future__ import annotations

import logging
from typing import Optional

from flask import Flask, jsonify

from config import StorefrontConfig
from routes import admin, api, auth
from storefront.db.session import build_engine, init_db, make_session_factory
from storefront.services.admin_service import AdminService
from storefront.services.auth_service import AuthService
from storefront.services.cart_service import CartService
from storefront.services.catalog_service import CatalogService
from storefront.services.errors import StorefrontError
from storefront.services.logging import log_event
from storefront.services.order_service import OrderService


logger = logging.getLogger(__name__)


def create_app(config: Optional[StorefrontConfig] = None, session_factory=None) -> Flask:
    config = config or StorefrontConfig.load()
    if session_factory is None:
        engine = build_engine(config.store.database_url)
        init_db(engine)
        session_factory = make_session_factory(engine)
        logger.info("database ready at %s", engine.url.render_as_string(hide_password=True))

    app = Flask(__name__)
    app.config["SECRET_KEY"] = config.secret_key
    app.config["STOREFRONT_CONFIG"] = config

    cart_service = CartService(session_factory, enforce_stock=config.store.enforce_stock)
    components = {
        "catalog": CatalogService(session_factory),
        "cart": cart_service,
        "orders": OrderService(
            session_factory,
            cart_service=cart_service,
            tax_rate=config.store.tax_rate,
            shipping_flat=config.store.shipping_flat,
        ),
        "auth": AuthService(session_factory),
        "admin": AdminService(session_factory),
    }
    app.extensions["storefront_components"] = components

    app.register_blueprint(auth.auth_bp)
    app.register_blueprint(api.api_bp)
    app.register_blueprint(admin.admin_bp)

    @app.errorhandler(StorefrontError)
    def handle_storefront_error(exc: StorefrontError):
        if exc.http_status >= 500:
            log_event("error", "request.failed", error=type(exc).__name__, message=exc.message)
        return jsonify(exc.to_dict()), exc.http_status

    return app


def main() -> None:
    config = StorefrontConfig.load()
    logging.basicConfig(level=config.store.log_level)
    app = create_app(config)
    app.run(host="0.0.0.0", port=5000, debug=False)


if __name__ == "__main__":
    main()
