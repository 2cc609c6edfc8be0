"""Forms for the auth blueprint."""

from wtforms import StringField
from wtforms.validators import DataRequired

from rendezvous.forms import JSONForm


class SessionLoginForm(JSONForm):
    """ID token obtained by the client from Firebase Authentication."""

    idToken = StringField("ID Token", validators=[DataRequired()])
