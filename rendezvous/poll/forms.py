"""Forms for the poll blueprint."""

from wtforms import Field, StringField, ValidationError
from wtforms.validators import DataRequired, Length

from rendezvous.core.constants import MIN_POLL_OPTIONS
from rendezvous.forms import JSONForm

from .models import PollOption


class PollOptionsField(Field):
    """Poll answers, sent as strings or as ``{optionId, text}`` objects.

    Plain strings get the ids ``opt1``, ``opt2`` and so on, in order.
    """

    def process_formdata(self, valuelist):
        if not valuelist:
            return
        options = []
        for position, value in enumerate(valuelist, start=1):
            if isinstance(value, str):
                options.append(PollOption(option_id=f"opt{position}", text=value))
            elif isinstance(value, dict) and "text" in value:
                option_id = value.get("optionId") or f"opt{position}"
                options.append(PollOption(option_id=str(option_id), text=str(value["text"])))
            else:
                raise ValueError(self.gettext("Not a valid poll option."))
        self.data = options


class PollForm(JSONForm):
    """Form for creating a poll."""

    question = StringField("Question", validators=[DataRequired(), Length(max=300)])
    options = PollOptionsField("Options", default=list)

    def validate_options(self, field):
        """Require enough distinct, non-empty answers."""
        options = field.data or []
        if len(options) < MIN_POLL_OPTIONS:
            raise ValidationError(f"A poll needs at least {MIN_POLL_OPTIONS} options.")
        if any(not option.text.strip() for option in options):
            raise ValidationError("Poll options cannot be empty.")
        option_ids = [option.option_id for option in options]
        if len(set(option_ids)) != len(option_ids):
            raise ValidationError("Poll option ids must be unique.")


class VoteForm(JSONForm):
    """Form for voting on a poll."""

    optionId = StringField("Option", validators=[DataRequired()])
