"""Shopper sign-up / sign-in routes."""

from __future__ import annotations

from typing import Optional

from flask import Blueprint, current_app, jsonify, request, session

from storefront.services.errors import Unauthenticated


auth_bp = Blueprint("storefront_auth", __name__, url_prefix="/auth")

SESSION_USER_KEY = "user_id"


def current_user_id() -> Optional[str]:
    return session.get(SESSION_USER_KEY)


def _auth_service():
    return current_app.extensions["storefront_components"]["auth"]


@auth_bp.post("/sign-up")
def sign_up():
    payload = request.get_json(silent=True) or {}
    profile = _auth_service().sign_up(
        email=str(payload.get("email") or ""),
        password=str(payload.get("password") or ""),
        full_name=payload.get("full_name"),
    )
    session[SESSION_USER_KEY] = profile["id"]
    return jsonify({"status": "ok", "user": profile}), 201


@auth_bp.post("/sign-in")
def sign_in():
    payload = request.get_json(silent=True) or {}
    profile = _auth_service().sign_in(
        email=str(payload.get("email") or ""),
        password=str(payload.get("password") or ""),
    )
    session[SESSION_USER_KEY] = profile["id"]
    return jsonify({"status": "ok", "user": profile})


@auth_bp.post("/sign-out")
def sign_out():
    session.pop(SESSION_USER_KEY, None)
    return jsonify({"status": "ok"})


@auth_bp.get("/me")
def me():
    user_id = current_user_id()
    if not user_id:
        raise Unauthenticated()
    return jsonify({"status": "ok", "user": _auth_service().get_profile(user_id)})
