from flask import (
    abort,
    current_app,
    flash,
    redirect,
    render_template,
    request,
    url_for,
    Response,
)
from flask_login import current_user, login_required

from . import bp

from wardrobe.api import CustomerAccountClient, InventoryClient, ProductClient, ReportClient, client_for
from wardrobe.calculations import summarize_orders
from wardrobe.crud import CrudController
from wardrobe.inventory import STATUSES, InventoryManager, filter_inventory, inventory_counts, item_status
from wardrobe import reports
from wardrobe.notifications import SORTS, LowStockNotifier, filter_notifications, sort_notifications
from wardrobe.roles import (
    CEO,
    CUSTOMER,
    DISPATCH_OFFICER,
    MERCHANDISE_MANAGER,
    SLUGS,
    access_level,
    entities_for,
    slug_for,
)
from wardrobe.schemas import ORDERS, SCHEMAS
from wardrobe.utils.exceptions import (
    AuthenticationError,
    AuthorizationError,
    BusinessRuleError,
    ValidationError,
    WardrobeError,
)
from wardrobe.utils.helpers import backend, reference_options, role_required, snapshots_for
from wardrobe.utils.logging import get_logger

log = get_logger(__name__)


def _notifier() -> LowStockNotifier:
    return LowStockNotifier(ProductClient(backend()), current_app.config["LOW_STOCK_THRESHOLD"])


@bp.route("/")
@login_required
def index() -> Response:
    slug = slug_for(current_user.role)
    if slug is None:
        raise AuthorizationError("Your role has no dashboard")
    return redirect(url_for("dashboard.role_view", role=slug))


@bp.route("/<role>")
@login_required
def role_view(role: str) -> str:
    role_name = SLUGS.get(role)
    if role_name is None:
        abort(404)
    if role_name != current_user.role:
        raise AuthorizationError("This dashboard belongs to another role")

    entities = [(SCHEMAS[key], access_level(role_name, key)) for key in entities_for(role_name)]
    order_summary = None
    low_stock = None
    orders_error = None

    if role_name in (CEO, DISPATCH_OFFICER):
        controller = CrudController(client_for(backend(), ORDERS), ORDERS, snapshots_for(ORDERS.key))
        controller.load()
        order_summary = summarize_orders(controller.records)
        orders_error = controller.error
    elif role_name == MERCHANDISE_MANAGER:
        try:
            notifier = _notifier()
            low_stock = notifier.counts(notifier.fetch())
        except AuthenticationError:
            raise
        except WardrobeError as e:
            log.warning("Low-stock count unavailable: %s", e)
    elif role_name == CUSTOMER:
        try:
            order_summary = summarize_orders(CustomerAccountClient(backend()).orders())
        except AuthenticationError:
            raise
        except WardrobeError as e:
            log.warning("Customer orders unavailable: %s", e)
            orders_error = "Failed to load orders"

    return render_template(
        "dashboard/index.html",
        role=role_name,
        entities=entities,
        order_summary=order_summary,
        low_stock=low_stock,
        error=orders_error,
    )


@bp.route("/notifications")
@role_required(MERCHANDISE_MANAGER)
def notifications() -> str:
    severity = request.args.get("severity", "all")
    sort = request.args.get("sort", "stock")
    if sort not in SORTS:
        sort = "stock"

    notifier = _notifier()
    error = None
    try:
        everything = notifier.fetch()
    except AuthenticationError:
        raise
    except WardrobeError as e:
        log.warning("Loading low-stock items failed: %s", e)
        everything = []
        error = "Failed to load low stock notifications"

    return render_template(
        "dashboard/notifications.html",
        notifications=sort_notifications(filter_notifications(everything, severity), sort),
        counts=notifier.counts(everything),
        severity=severity,
        sort=sort,
        sorts=SORTS,
        poll_seconds=current_app.config["NOTIFICATION_POLL_SECONDS"],
        error=error,
    )


@bp.route("/notifications/<int:product_id>/reordered", methods=["POST"])
@role_required(MERCHANDISE_MANAGER)
def mark_reordered(product_id: int) -> Response:
    try:
        _notifier().mark_reordered(product_id)
    except AuthenticationError:
        raise
    except WardrobeError as e:
        log.warning("Marking product %s reordered failed: %s", product_id, e)
        flash("Error marking product as reordered", "danger")
    else:
        flash("Product marked as reordered successfully!", "success")
    return redirect(url_for(
        "dashboard.notifications",
        severity=request.args.get("severity", "all"),
        sort=request.args.get("sort", "stock"),
    ))


def _inventory_filters() -> dict:
    return {"q": request.args.get("q", ""), "status": request.args.get("status", "all")}


@bp.route("/inventory")
@role_required(MERCHANDISE_MANAGER)
def inventory() -> str:
    filters = _inventory_filters()
    if filters["status"] not in STATUSES:
        filters["status"] = "all"

    api = backend()
    error = None
    try:
        items = InventoryClient(api).list()
    except AuthenticationError:
        raise
    except WardrobeError as e:
        log.warning("Loading inventory failed: %s", e)
        items = []
        error = "Failed to load inventory"

    return render_template(
        "dashboard/inventory.html",
        items=filter_inventory(items, filters["q"], filters["status"]),
        counts=inventory_counts(items),
        statuses=STATUSES,
        status_of=item_status,
        products=reference_options(api, "products"),
        filters=filters,
        error=error,
    )


@bp.route("/inventory/<int:item_id>", methods=["POST"])
@role_required(MERCHANDISE_MANAGER)
def adjust_inventory(item_id: int) -> Response:
    manager = InventoryManager(InventoryClient(backend()))
    try:
        manager.adjust(item_id, request.form.get("reorderLevel"), request.form.get("quantity"))
    except (ValidationError, BusinessRuleError) as e:
        flash(e.message, "danger")
    except AuthenticationError:
        raise
    except WardrobeError as e:
        log.warning("Updating inventory item %s failed: %s", item_id, e)
        flash("Error updating inventory", "danger")
    else:
        flash("Inventory updated successfully!", "success")
    return redirect(url_for("dashboard.inventory", **_inventory_filters()))


@bp.route("/inventory/add-stock", methods=["POST"])
@role_required(MERCHANDISE_MANAGER)
def add_stock() -> Response:
    manager = InventoryManager(InventoryClient(backend()))
    try:
        manager.add_stock(request.form.get("productId"), request.form.get("quantity"))
    except (ValidationError, BusinessRuleError) as e:
        flash(e.message, "danger")
    except AuthenticationError:
        raise
    except WardrobeError as e:
        log.warning("Adding stock failed: %s", e)
        flash("Error adding stock", "danger")
    else:
        flash("Stock added successfully!", "success")
    return redirect(url_for("dashboard.inventory", **_inventory_filters()))


@bp.route("/reports")
@role_required(CEO)
def reports_view() -> str:
    report_id = request.args.get("report")
    report = reports.REPORTS.get(report_id) if report_id else None
    if report_id and report is None:
        abort(404)

    values = {**reports.default_params(), **{k: v for k, v in request.args.items() if v}}
    result = None
    error = None
    if report is not None:
        try:
            params = reports.report_params(report, request.args)
            result = reports.summarize(ReportClient(backend()).fetch(report.id, params))
        except ValidationError as e:
            error = e.message
        except AuthenticationError:
            raise
        except WardrobeError as e:
            log.warning("Report %s failed: %s", report.id, e)
            error = "Failed to generate report. Please try again."

    return render_template(
        "dashboard/reports.html",
        reports=reports.REPORTS.values(),
        report=report,
        periods=reports.PERIODS,
        values=values,
        result=result,
        error=error,
    )
