"""Forms for account actions."""

from wtforms import BooleanField, Form, PasswordField, StringField
from wtforms.validators import DataRequired, Email, EqualTo, Length, \
    Optional

MIN_PASSWORD_LENGTH = 8


class SignupForm(Form):
    """User registration form."""

    email = StringField('E-mail address',
                        validators=[DataRequired(), Email()])
    password = PasswordField(
        'Password',
        validators=[DataRequired(), Length(min=MIN_PASSWORD_LENGTH)]
    )


class SigninForm(Form):
    """Log in form."""

    email = StringField('E-mail address', validators=[DataRequired()])
    password = PasswordField('Password', validators=[DataRequired()])
    remember = BooleanField('Remember me')


class EditForm(Form):
    """Change e-mail address and/or password."""

    email = StringField('E-mail address', validators=[Optional(), Email()])
    password = PasswordField(
        'New password',
        validators=[Optional(), Length(min=MIN_PASSWORD_LENGTH)]
    )
    confirm_password = PasswordField(
        'Confirm new password',
        validators=[EqualTo('password', message='Passwords must match')]
    )


class RecoveryForm(Form):
    """Request a password recovery e-mail."""

    email = StringField('E-mail address', validators=[DataRequired()])


class ResetPasswordForm(Form):
    """Choose a new password after following a recovery link."""

    password = PasswordField(
        'New password',
        validators=[DataRequired(), Length(min=MIN_PASSWORD_LENGTH)]
    )
    confirm_password = PasswordField(
        'Confirm new password',
        validators=[EqualTo('password', message='Passwords must match')]
    )
