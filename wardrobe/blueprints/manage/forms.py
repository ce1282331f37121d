from flask_wtf import FlaskForm
from wtforms import (
    BooleanField,
    EmailField,
    PasswordField,
    SelectField,
    StringField,
    SubmitField,
    TextAreaField,
)
from typing import Any, Dict, Iterable, List, Mapping, Tuple, Type

from wardrobe.schemas import EntitySchema, Field


def _input(input_type: str, **extra: str):
    def factory(**kw: Any) -> StringField:
        render_kw = {**kw.pop("render_kw", {}), "type": input_type, **extra}
        return StringField(render_kw=render_kw, **kw)
    return factory


# numbers and dates stay strings here, the schema rules parse and check them
type_map = {
    "text": StringField,
    "textarea": TextAreaField,
    "number": _input("number", step="0.01"),
    "integer": _input("number", step="1"),
    "date": _input("date"),
    "email": EmailField,
    "password": PasswordField,
    "bool": BooleanField,
    "select": SelectField,
}


def build_form(fields: Iterable[Field], choices: Mapping[str, List[Tuple[str, str]]],
               number_field: str | None = None, recalculate: bool = False,
               submit_label: str = "Save") -> Type[FlaskForm]:
    attrs: Dict[str, Any] = {}
    if number_field:
        attrs[number_field] = StringField("Number", render_kw={"readonly": True})
    for f in fields:
        kwargs: Dict[str, Any] = {"label": f.label}
        if f.readonly:
            kwargs["render_kw"] = {"readonly": True}
        if f.kind == "select":
            options = list(f.choices) or list(choices.get(f.name, []))
            kwargs["choices"] = [("", f"Select {f.label.lower()}")] + options
            kwargs["validate_choice"] = False
        attrs[f.name] = type_map.get(f.kind, StringField)(**kwargs)
    if recalculate:
        attrs["recalculate"] = SubmitField("Recalculate")
    attrs["submit"] = SubmitField(submit_label)
    return type("DynamicForm", (FlaskForm,), attrs)


def schema_form(schema: EntitySchema, choices: Mapping[str, List[Tuple[str, str]]],
                editing: bool = False) -> Type[FlaskForm]:
    return build_form(
        schema.form_fields(editing),
        choices,
        number_field=schema.number_field if schema.number_field and not _is_field(schema, schema.number_field) else None,
        recalculate=schema.derive is not None and any(f.readonly for f in schema.fields),
    )


def _is_field(schema: EntitySchema, name: str) -> bool:
    return any(f.name == name for f in schema.fields)


def form_values(form: FlaskForm) -> Dict[str, Any]:
    return {
        name: value for name, value in form.data.items()
        if name not in ("submit", "recalculate", "csrf_token")
    }


def fill(form: FlaskForm, values: Mapping[str, Any]) -> None:
    for name, value in values.items():
        if name in form:
            form[name].data = value
