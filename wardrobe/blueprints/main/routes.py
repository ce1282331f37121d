from flask import (
    abort,
    render_template,
    request,
)
from . import bp

from wardrobe.api import ProductClient
from wardrobe.crud import CrudController
from wardrobe.listing import Criteria, apply, resolve_sort
from wardrobe.schemas import PRODUCTS
from wardrobe.utils.helpers import backend, reference_options, snapshots_for


@bp.route("/index")
@bp.route("/")
def index() -> str:
    api = backend()
    controller = CrudController(ProductClient(api), PRODUCTS, snapshots_for("storefront"))
    controller.load()

    products = [p for p in controller.records if p.get("isActive") is not False]
    criteria = Criteria.from_args(request.args, PRODUCTS)
    sort_key, direction = resolve_sort(request.args.get("sort"), request.args.get("direction"), PRODUCTS)
    return render_template(
        "main/index.html",
        products=apply(products, criteria, sort_key, direction, PRODUCTS),
        categories=reference_options(api, "categories"),
        criteria=criteria,
        sort_keys=PRODUCTS.sort_keys,
        sort_key=sort_key,
        direction=direction,
        error=controller.error,
    )


@bp.route("/product/<int:product_id>")
def product(product_id: int) -> str:
    product = ProductClient(backend()).get(product_id)
    if not product:
        abort(404)
    return render_template(
        "main/product.html",
        product=product,
    )
