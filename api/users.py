from flask import Blueprint, g, jsonify

from utils.decorators import session_required

bp = Blueprint("users", __name__)


@bp.get("/me")
@session_required()
def me():
    """
    Protected route: identity of the admitted session.
    ---
    tags:
      - Users
    security:
      - Bearer: []
    responses:
      200:
        description: OK
      401:
        description: Unauthorized
    """
    claims = g.current_claims
    return jsonify(
        {
            "data": {
                "message": "Protected route accessible",
                "userId": claims.subject,
                "email": claims.email,
            }
        }
    ), 200
