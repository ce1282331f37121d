from flask import (
    current_app,
    flash,
    jsonify,
    redirect,
    render_template,
    request,
    url_for,
    Response,
)

from flask_login import login_user, logout_user, login_required

from typing import Any, Dict

from . import bp
from . import forms
from wardrobe.blueprints.manage.forms import form_values

from wardrobe.api import AuthService, CustomerAccountClient, ProductClient, client_for
from wardrobe.cart import Cart, place_orders, validate_checkout
from wardrobe.calculations import summarize_orders
from wardrobe.listing import Criteria, apply
from wardrobe.roles import CUSTOMER
from wardrobe.schemas import CUSTOMERS, ORDERS, PROFILE, REGISTRATION_RULES
from wardrobe.tracking import STEPS, describe, order_progress, status_name, timeline
from wardrobe.utils.exceptions import (
    ApiError,
    AuthenticationError,
    BusinessRuleError,
    NotFoundError,
    WardrobeError,
)
from wardrobe.utils.helpers import (
    SessionUser,
    backend,
    drop_snapshots,
    reference_options,
    role_required,
    user_session,
)
from wardrobe.utils.logging import get_logger
from wardrobe.validation import CHANGE_PASSWORD_RULES, validate

log = get_logger(__name__)

DEFAULT_PAYMENT_METHODS = [("Cash on Delivery", "Cash on Delivery"), ("Card Payment", "Card Payment")]


def _auth() -> AuthService:
    us = user_session()
    return AuthService(backend(), us)


@bp.route("/login", methods=["GET", "POST"])
def login() -> str | Response:
    form = forms.LoginForm()
    if form.validate_on_submit():
        us = user_session()
        cart_items = us.cart_items
        try:
            AuthService(backend(), us).login(form.username.data, form.password.data)
        except AuthenticationError as e:
            flash(e.message, "danger")
        except ApiError:
            flash("Login failed, please try again later", "danger")
        else:
            us.save_cart(cart_items)
            login_user(SessionUser.from_session(us))
            flash(f"Welcome back, {us.username}!", "success")
            next_url = request.args.get("next") or ""
            if not next_url.startswith("/") or next_url.startswith("//"):
                next_url = url_for("dashboard.index")
            return redirect(next_url)
    return render_template(
        "user/login.html",
        login_form=form,
    )


@bp.route("/logout")
def logout() -> Response:
    drop_snapshots(user_session().username)
    _auth().logout()
    logout_user()
    flash("You have been logged out", "info")
    return redirect(url_for("main.index"))


@bp.route("/register", methods=["GET", "POST"])
def register() -> str | Response:
    api = backend()
    form = forms.registration_form(reference_options(api, "provinces"))()
    errors = []
    if form.validate_on_submit():
        values = {name: value for name, value in form.data.items() if name not in ("submit", "csrf_token")}
        errors = validate(values, REGISTRATION_RULES)
        if not errors:
            payload = CUSTOMERS.to_payload(values)
            payload.pop("status", None)
            payload["username"] = values["username"].strip()
            payload["password"] = values["password"]
            try:
                AuthService(api, user_session()).register(payload)
            except BusinessRuleError as e:
                errors = [e.message]
            except ApiError:
                errors = ["Registration failed, please try again"]
            else:
                flash("Registration successful! Please log in.", "success")
                return redirect(url_for("user.login"))
    return render_template(
        "user/register.html",
        signup_form=form,
        errors=errors,
    )


@bp.route("/change-password", methods=["GET", "POST"])
@login_required
def change_password() -> str | Response:
    form = forms.ChangePasswordForm()
    errors = []
    if form.validate_on_submit():
        values = {
            "currentPassword": form.currentPassword.data or "",
            "newPassword": form.newPassword.data or "",
            "confirmPassword": form.confirmPassword.data or "",
        }
        errors = validate(values, CHANGE_PASSWORD_RULES)
        if not errors:
            try:
                _auth().change_password(values["currentPassword"], values["newPassword"])
            except BusinessRuleError as e:
                errors = [e.message]
            except ApiError:
                errors = ["Failed to change password"]
            else:
                flash("Password changed successfully", "success")
                return redirect(url_for("dashboard.index"))
    return render_template(
        "user/change_password.html",
        form=form,
        errors=errors,
    )


def _cart_response(cart: Cart, message: str) -> Response:
    if request.is_json:
        return jsonify({"message": message, "cart_size": cart.count}), 201
    flash(message, "success")
    return redirect(request.referrer or url_for("user.cart"))


def _form_or_json(name: str, default: Any = None) -> Any:
    if request.is_json:
        return (request.get_json(silent=True) or {}).get(name, default)
    return request.form.get(name, default)


@bp.route("/cart")
def cart() -> str:
    cart = Cart(user_session())
    config = current_app.config
    return render_template(
        "user/cart.html",
        items=cart.items,
        summary=cart.summary(config["TAX_RATE"], config["FREE_SHIPPING_THRESHOLD"], config["SHIPPING_FEE"]),
    )


@bp.route("/cart/add", methods=["POST"])
def add_to_cart() -> Response:
    product_id = _form_or_json("product_id")
    quantity = _form_or_json("quantity", 1)
    product = ProductClient(backend()).get(product_id)
    cart = Cart(user_session())
    cart.add(product, quantity)
    return _cart_response(cart, f"{product.get('name')} added to cart")


@bp.route("/cart/update", methods=["POST"])
def update_cart() -> Response:
    cart = Cart(user_session())
    cart.update(_form_or_json("product_id"), _form_or_json("quantity"))
    return _cart_response(cart, "Cart updated")


@bp.route("/cart/remove/<product_id>", methods=["POST"])
def remove_from_cart(product_id: str) -> Response:
    cart = Cart(user_session())
    cart.remove(product_id)
    return _cart_response(cart, "Item removed from cart")


@bp.route("/cart/clear", methods=["POST"])
def clear_cart() -> Response:
    cart = Cart(user_session())
    cart.clear()
    return _cart_response(cart, "Cart cleared")


def _profile_address(profile: Dict[str, Any]) -> str:
    province = (profile.get("province") or {}).get("value") or ""
    return "\n".join([
        profile.get("fullName") or "",
        profile.get("address") or "",
        f"{profile.get('country') or ''}, {province}",
        f"Zip: {profile.get('zipCode') or ''}",
        f"Mobile: {profile.get('mobileNumber') or ''}",
    ])


@bp.route("/checkout", methods=["GET", "POST"])
@role_required(CUSTOMER)
def checkout() -> str | Response:
    api = backend()
    us = user_session()
    cart = Cart(us)
    config = current_app.config

    methods = [(label, label) for _, label in reference_options(api, "payment-methods")] or DEFAULT_PAYMENT_METHODS
    form = forms.checkout_form(methods)()
    errors = []

    if request.method == "GET":
        try:
            form.shippingAddress.data = _profile_address(AuthService(api, us).current_customer())
        except (ApiError, BusinessRuleError) as e:
            log.warning("Could not prefill shipping address: %s", e)

    if form.validate_on_submit():
        address = form.shippingAddress.data or ""
        method = form.paymentMethod.data
        errors = validate_checkout(cart, address, method)
        if not errors:
            try:
                placed = place_orders(cart, client_for(api, ORDERS), us.customer_id, address, method)
            except BusinessRuleError as e:
                errors = [e.message]
            except WardrobeError as e:
                log.warning("Checkout failed: %s", e)
                errors = ["Failed to place order. Please try again."]
            else:
                numbers = ", ".join(str((o or {}).get("orderNo", "")) for o in placed)
                flash(f"Order placed successfully! {len(placed)} item(s) ordered. Order numbers: {numbers}", "success")
                return redirect(url_for("user.orders"))

    return render_template(
        "user/checkout.html",
        form=form,
        items=cart.items,
        summary=cart.summary(config["TAX_RATE"], config["FREE_SHIPPING_THRESHOLD"], config["SHIPPING_FEE"]),
        errors=errors,
    )


@bp.route("/orders")
@role_required(CUSTOMER)
def orders() -> str:
    error = None
    try:
        records = CustomerAccountClient(backend()).orders()
    except ApiError:
        records = []
        error = "Failed to load orders"
    criteria = Criteria.from_args(request.args, ORDERS)
    records = apply(records, criteria, request.args.get("sort"), request.args.get("direction"), ORDERS)
    return render_template(
        "user/orders.html",
        orders=records,
        summary=summarize_orders(records),
        criteria=criteria,
        error=error,
    )


@bp.route("/orders/<order_no>/status")
@role_required(CUSTOMER)
def order_status(order_no: str) -> str:
    info: Dict[str, Any] = {}
    error = None
    try:
        info = CustomerAccountClient(backend()).order_status(order_no) or {}
    except NotFoundError:
        error = "Order not found or access denied"
    except BusinessRuleError as e:
        error = e.message if e.message != BusinessRuleError.message else "Order not found"
    except ApiError as e:
        log.warning("Order status for %s unavailable: %s", order_no, e)
        if e.payload.get("status") == 403:
            error = "Order not found or access denied"
        else:
            error = "Failed to fetch order status"

    status = info.get("status")
    return render_template(
        "user/order_status.html",
        order_no=order_no,
        info=info,
        status=status_name(status),
        progress=order_progress(status),
        steps=timeline(status),
        total_steps=len(STEPS),
        description=describe(status),
        error=error,
    )


@bp.route("/profile", methods=["GET", "POST"])
@role_required(CUSTOMER)
def profile() -> str | Response:
    account = CustomerAccountClient(backend())
    try:
        current = account.profile()
    except AuthenticationError:
        raise
    except WardrobeError as e:
        log.warning("Profile unavailable: %s", e)
        return render_template("user/profile.html", form=None, profile={}, errors=["Failed to load profile"])

    form = forms.profile_form()(data=PROFILE.form_defaults(current))
    errors = []
    if form.validate_on_submit():
        values = form_values(form)
        errors = PROFILE.validate(values, editing=True)
        if not errors:
            payload = {**current, **PROFILE.to_payload(values, current)}
            try:
                account.update_profile(payload)
            except BusinessRuleError as e:
                errors = [e.message]
            except ApiError:
                errors = ["Failed to update profile"]
            else:
                flash("Profile updated successfully!", "success")
                return redirect(url_for("user.profile"))
    return render_template(
        "user/profile.html",
        form=form,
        profile=current,
        errors=errors,
    )
