"""Forms for the event blueprint."""

from wtforms import (
    BooleanField,
    DateTimeField,
    FloatField,
    IntegerField,
    SelectField,
    StringField,
    ValidationError,
)
from wtforms.validators import URL, DataRequired, Length, NumberRange, Optional

from rendezvous.core.constants import EVENT_TYPE_PRIVATE, EVENT_TYPE_PUBLIC
from rendezvous.forms import JSONForm, MappingField, StringListField

from .models import Location, PrivateEvent, PublicEvent

DATETIME_FORMATS = [
    "%Y-%m-%dT%H:%M:%S%z",
    "%Y-%m-%dT%H:%M:%S",
    "%Y-%m-%dT%H:%M",
    "%Y-%m-%d %H:%M:%S",
]


class EventForm(JSONForm):
    """Form for creating/editing an event."""

    uid = StringField("Event ID", validators=[Optional()])
    type = SelectField(
        "Visibility",
        choices=[(EVENT_TYPE_PRIVATE, "Private"), (EVENT_TYPE_PUBLIC, "Public")],
        default=EVENT_TYPE_PRIVATE,
    )
    title = StringField("Title", validators=[DataRequired(), Length(max=120)])
    description = StringField("Description", validators=[Optional()], default="")
    start = DateTimeField("Start", format=DATETIME_FORMATS, validators=[Optional()])
    end = DateTimeField("End", format=DATETIME_FORMATS, validators=[Optional()])
    imageUrl = StringField("Image URL", validators=[Optional(), URL()])
    location = MappingField("Location", validators=[Optional()])
    maxCapacity = IntegerField(
        "Max Capacity", validators=[Optional(), NumberRange(min=1)]
    )
    participationFee = FloatField(
        "Participation Fee", validators=[Optional(), NumberRange(min=0)]
    )
    isFlash = BooleanField("Flash Event", false_values=(False, "false", ""))

    # Public events only
    subtitle = StringField("Subtitle", validators=[Optional()], default="")
    tags = StringListField("Tags", default=list)
    website = StringField("Website", validators=[Optional(), URL()])

    def validate_location(self, field):
        """Require numeric coordinates when a location is sent."""
        if not field.data:
            return
        try:
            float(field.data["latitude"])
            float(field.data["longitude"])
        except (KeyError, TypeError, ValueError):
            raise ValidationError("Location needs numeric latitude and longitude.")

    def validate_end(self, field):
        """An event cannot end before it starts."""
        if not field.data or not self.start.data:
            return
        try:
            ends_early = field.data < self.start.data
        except TypeError:
            raise ValidationError("Start and end must both carry a UTC offset or neither.")
        if ends_early:
            raise ValidationError("End must be after start.")

    def to_event(self, uid, owner_id):
        """Build the event variant the form describes."""
        location = None
        if self.location.data:
            location = Location.from_map(self.location.data)
        common = dict(
            uid=uid,
            owner_id=owner_id,
            title=self.title.data.strip(),
            description=self.description.data or "",
            start=self.start.data,
            end=self.end.data,
            image_url=self.imageUrl.data or None,
            location=location,
            max_capacity=self.maxCapacity.data,
            participation_fee=self.participationFee.data,
            is_flash=bool(self.isFlash.data),
        )
        if self.type.data == EVENT_TYPE_PUBLIC:
            return PublicEvent(
                **common,
                subtitle=self.subtitle.data or "",
                tags=list(self.tags.data or []),
                website=self.website.data or None,
            )
        return PrivateEvent(**common)


class InviteForm(JSONForm):
    """Form for inviting a user to an event."""

    user_id = StringField("User", validators=[DataRequired()])
