from flask import (
    abort,
    flash,
    redirect,
    render_template,
    request,
    url_for,
    Response,
)
from flask_login import current_user, login_required

from typing import Any, Dict, List, Tuple

from . import bp
from . import forms

from wardrobe.api import ApiSession, client_for
from wardrobe.calculations import summarize_orders
from wardrobe.crud import CrudController
from wardrobe.listing import Criteria, Facet, apply, distinct_values, resolve_sort
from wardrobe.roles import can_manage, can_view
from wardrobe.schemas import SCHEMAS, EntitySchema
from wardrobe.utils.exceptions import AuthorizationError
from wardrobe.utils.helpers import backend, reference_options, snapshots_for
from wardrobe.utils.logging import get_logger

log = get_logger(__name__)


def _schema(entity: str, manage: bool = False) -> EntitySchema:
    schema = SCHEMAS.get(entity)
    if schema is None:
        abort(404)
    allowed = can_manage if manage else can_view
    if not allowed(current_user.role, entity):
        action = "manage" if manage else "view"
        raise AuthorizationError(f"Your role cannot {action} {schema.plural}")
    return schema


def _controller(schema: EntitySchema, confirm=None) -> Tuple[CrudController, ApiSession]:
    api = backend()
    controller = CrudController(client_for(api, schema), schema, snapshots_for(schema.key), confirm)
    return controller, api


def _facet_options(api: ApiSession, facet: Facet, records: List[Dict[str, Any]]) -> List[Tuple[str, str]]:
    if facet.choices:
        return list(facet.choices)
    if facet.lookup:
        return reference_options(api, facet.lookup)
    if facet.kind == "date":
        return []
    return [(value, value) for value in distinct_values(records, facet.path)]


def _field_choices(api: ApiSession, schema: EntitySchema) -> Dict[str, List[Tuple[str, str]]]:
    return {
        f.name: reference_options(api, f.lookup)
        for f in schema.fields
        if f.kind == "select" and f.lookup and not f.choices
    }


@bp.route("/<entity>/")
@login_required
def index(entity: str) -> str:
    schema = _schema(entity)
    controller, api = _controller(schema)
    controller.load()

    criteria = Criteria.from_args(request.args, schema)
    sort_key, direction = resolve_sort(request.args.get("sort"), request.args.get("direction"), schema)
    records = apply(controller.records, criteria, sort_key, direction, schema)
    facets = {
        name: (facet, _facet_options(api, facet, controller.records))
        for name, facet in schema.facets.items()
    }
    return render_template(
        "manage/list.html",
        schema=schema,
        records=records,
        total=len(controller.records),
        criteria=criteria,
        facets=facets,
        sort_key=sort_key,
        direction=direction,
        error=controller.error,
        can_manage=can_manage(current_user.role, entity),
        summary=summarize_orders(records) if schema.key == "orders" else None,
    )


def _form_view(controller: CrudController, api: ApiSession) -> str | Response:
    schema = controller.schema
    form_cls = forms.schema_form(schema, _field_choices(api, schema), editing=controller.editing)
    form = form_cls(data=controller.form_defaults())

    if form.validate_on_submit():
        values = forms.form_values(form)
        if "recalculate" in form and form.recalculate.data:
            forms.fill(form, schema.recalculate(values))
        elif controller.submit(values):
            flash(f"{schema.singular.capitalize()} saved successfully", "success")
            return redirect(url_for("manage.index", entity=schema.key))

    return render_template(
        "manage/form.html",
        schema=schema,
        form=form,
        editing=controller.editing,
        subject=controller.subject,
        errors=controller.errors,
    )


@bp.route("/<entity>/new", methods=["GET", "POST"])
@login_required
def new(entity: str) -> str | Response:
    schema = _schema(entity, manage=True)
    controller, api = _controller(schema)
    controller.open_create()
    return _form_view(controller, api)


@bp.route("/<entity>/<int:record_id>/edit", methods=["GET", "POST"])
@login_required
def edit(entity: str, record_id: int) -> str | Response:
    schema = _schema(entity, manage=True)
    controller, api = _controller(schema)
    record = controller.client.get(record_id)
    if not record:
        abort(404)
    controller.open_edit(record)
    return _form_view(controller, api)


@bp.route("/<entity>/<int:record_id>/delete", methods=["GET", "POST"])
@login_required
def delete(entity: str, record_id: int) -> str | Response:
    schema = _schema(entity, manage=True)

    def confirmed(message: str) -> bool:
        return request.method == "POST" and request.form.get("confirm") == "yes"

    controller, api = _controller(schema, confirm=confirmed)
    if request.method == "GET":
        record = controller.client.get(record_id)
        if not record:
            abort(404)
        return render_template(
            "manage/confirm_delete.html",
            schema=schema,
            record=record,
            message=f"Are you sure you want to delete this {schema.singular}?",
        )

    if controller.remove(record_id):
        flash(f"{schema.singular.capitalize()} deleted successfully", "success")
    elif controller.error:
        flash(controller.error, "danger")
    else:
        flash("Deletion cancelled", "info")
    return redirect(url_for("manage.index", entity=schema.key))
