from flask import Blueprint

bp = Blueprint("cv", __name__)

from . import candidates  # noqa: E402,F401
