"""
Authentication blueprint:
- POST /auth/register
- POST /auth/login
- POST /auth/refresh
- POST /auth/logout

The access token travels in the response body and comes back as an
`Authorization: Bearer` header. The refresh token never appears in a body:
it is set as an HttpOnly, SameSite=Strict cookie scoped to
REFRESH_COOKIE_PATH, and cleared on logout.
"""
from __future__ import annotations

from flask import Blueprint, request, jsonify, g, current_app, make_response

from models.schemas.user import RegisterSchema, LoginSchema
from services.errors import UnauthorizedError
from utils.decorators import session_required

bp = Blueprint("auth", __name__)

register_schema = RegisterSchema()
login_schema = LoginSchema()


def _credentials():
    return current_app.extensions["session_auth"].credentials


def set_refresh_cookie(response, refresh_token: str):
    cfg = current_app.config
    response.set_cookie(
        cfg["REFRESH_COOKIE_NAME"],
        refresh_token,
        max_age=int(cfg["REFRESH_TOKEN_EXPIRES"].total_seconds()),
        path=cfg["REFRESH_COOKIE_PATH"],
        secure=cfg["REFRESH_COOKIE_SECURE"],
        httponly=True,
        samesite="Strict",
    )
    return response


def _token_response(tokens, status: int):
    response = make_response(jsonify({"data": {"accessToken": tokens.access_token}}), status)
    return set_refresh_cookie(response, tokens.refresh_token)


@bp.post("/register")
def register():
    """
    Register a new user and open a session.
    ---
    tags:
      - Auth
    consumes:
      - application/json
    parameters:
      - in: body
        name: body
        schema:
          type: object
          properties:
            email: { type: string }
            password: { type: string }
    responses:
      201:
        description: Created (access token in body, refresh token in cookie)
      409:
        description: Email already registered
      422:
        description: Validation error
    """
    payload = request.get_json(silent=True) or {}
    data = register_schema.load(payload)

    tokens = _credentials().register(data["email"], data["password"])
    return _token_response(tokens, 201)


@bp.post("/login")
def login():
    """
    Login: return an access token and set the refresh cookie
    ---
    tags:
      - Auth
    consumes:
      - application/json
    parameters:
      -  in: body
         name: body
         schema:
           type: object
           properties:
             email: { type: string }
             password: { type: string }
    responses:
      200:
        description: OK (access token in body, refresh token in cookie)
      401:
        description: Invalid credentials
    """
    payload = request.get_json(silent=True) or {}
    data = login_schema.load(payload)

    tokens = _credentials().login(data["email"], data["password"])
    return _token_response(tokens, 200)


@bp.post("/refresh")
def refresh():
    """
    Use the refresh cookie to obtain a new access token and refresh cookie (rotation)
    ---
    tags:
      - Auth
    responses:
      200:
        description: OK (new access token in body, new refresh token in cookie)
      401:
        description: Missing, invalid or revoked refresh token
    """
    refresh_token = request.cookies.get(current_app.config["REFRESH_COOKIE_NAME"])
    if not refresh_token:
        raise UnauthorizedError("refresh token not found")

    credentials = _credentials()
    claims = credentials.decode_refresh_token(refresh_token)
    tokens = credentials.refresh(claims.subject, refresh_token)
    return _token_response(tokens, 200)


@bp.post("/logout")
@session_required()
def logout():
    """
    Logout: revokes the refresh chain and clears the cookie.
    The presented access token stays valid until it expires.
    ---
    tags:
      - Auth
    security:
      - Bearer: []
    responses:
      200:
        description: OK
      401:
        description: Unauthorized
    """
    success = _credentials().logout(g.current_claims.subject)

    response = make_response(jsonify({"data": {"success": success}}), 200)
    response.delete_cookie(
        current_app.config["REFRESH_COOKIE_NAME"],
        path=current_app.config["REFRESH_COOKIE_PATH"],
        secure=current_app.config["REFRESH_COOKIE_SECURE"],
        httponly=True,
        samesite="Strict",
    )
    return response
