from flask import Blueprint
from wardrobe.blueprints import register_blueprint

bp = Blueprint('manage', __name__)

from . import routes

register_blueprint(bp, url_prefix='/manage')
