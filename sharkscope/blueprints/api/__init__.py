"""API Blueprint for SharkScope REST endpoints."""

from flask import Blueprint

api_bp = Blueprint('api', __name__)

from sharkscope.blueprints.api import routes  # noqa: E402, F401
from sharkscope.blueprints.api import network  # noqa: E402, F401
from sharkscope.blueprints.api import captures  # noqa: E402, F401
from sharkscope.blueprints.api import analysis  # noqa: E402, F401
from sharkscope.blueprints.api import configs  # noqa: E402, F401
