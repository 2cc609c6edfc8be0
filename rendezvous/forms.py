"""Form base class and fields for JSON request bodies."""

from flask_wtf import FlaskForm  # type: ignore
from wtforms import Field


class JSONForm(FlaskForm):
    """A form filled from a JSON body; the API blueprints are CSRF exempt."""

    class Meta:
        csrf = False


class StringListField(Field):
    """A list of strings, sent as a JSON array or a comma separated string."""

    def _value(self):
        return ", ".join(self.data or [])

    def process_formdata(self, valuelist):
        if not valuelist:
            return
        items = []
        for value in valuelist:
            if not isinstance(value, str):
                raise ValueError(self.gettext("Not a valid list of strings."))
            items.extend(part.strip() for part in value.split(","))
        self.data = [item for item in items if item]


class MappingField(Field):
    """A single JSON object, kept as a dict."""

    def process_formdata(self, valuelist):
        if not valuelist:
            return
        if not isinstance(valuelist[0], dict):
            raise ValueError(self.gettext("Not a valid object."))
        self.data = dict(valuelist[0])
