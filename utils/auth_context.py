from functools import wraps
from flask import g, jsonify
from security.session import get_session_from_request, token_from_request
from models import db
from models.user import User

def load_current_user():
    g.user = None
    g.session = None
    g.auth_source = None

    sess = get_session_from_request()
    if not sess:
        return
    g.session = sess
    g.user = db.session.get(User, sess.user_id)
    _, g.auth_source = token_from_request()

def login_required(fn):
    @wraps(fn)
    def wrapper(*args, **kwargs):
        if getattr(g, "user", None) is None:
            return jsonify(error="Authentication required", kind="Unauthenticated"), 401
        return fn(*args, **kwargs)
    return wrapper
