from flask_wtf import FlaskForm
from wtforms import PasswordField, SelectField, StringField, SubmitField, TextAreaField
from wtforms.validators import DataRequired
from typing import List, Tuple, Type

from wardrobe.schemas import CUSTOMERS, PROFILE, Field
from wardrobe.blueprints.manage.forms import build_form

REGISTRATION_FIELDS = [f for f in CUSTOMERS.fields if f.name != "statusId"] + [
    Field("username", "Username"),
    Field("password", "Password", "password"),
    Field("confirmPassword", "Confirm password", "password"),
]


class LoginForm(FlaskForm):
    username = StringField('Username', validators=[DataRequired()])
    password = PasswordField('Password', validators=[DataRequired()])
    submit = SubmitField('Log In')


class ChangePasswordForm(FlaskForm):
    currentPassword = PasswordField('Current password')
    newPassword = PasswordField('New password')
    confirmPassword = PasswordField('Confirm new password')
    submit = SubmitField('Change Password')


def registration_form(provinces: List[Tuple[str, str]]) -> Type[FlaskForm]:
    return build_form(REGISTRATION_FIELDS, {"provinceId": provinces}, submit_label="Sign Up")


def checkout_form(payment_methods: List[Tuple[str, str]]) -> Type[FlaskForm]:
    class CheckoutForm(FlaskForm):
        shippingAddress = TextAreaField('Shipping address')
        paymentMethod = SelectField(
            'Payment method',
            choices=payment_methods,
            validate_choice=False,
        )
        submit = SubmitField('Place Order')
    return CheckoutForm


def profile_form() -> Type[FlaskForm]:
    return build_form(PROFILE.fields, {}, submit_label="Save Profile")
