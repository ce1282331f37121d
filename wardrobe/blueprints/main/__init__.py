from flask import Blueprint
from wardrobe.blueprints import register_blueprint

bp = Blueprint('main', __name__)

from . import routes

register_blueprint(bp)
