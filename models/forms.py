from flask_wtf import FlaskForm
from wtforms import PasswordField, StringField, IntegerField, FloatField, SelectField, TextAreaField
from wtforms.validators import DataRequired, NumberRange, Optional, Length, InputRequired
from models.constants import (
    BRISTOL_TYPES, WEIGHT_UNITS, MIN_RATING, MAX_RATING, MAX_COMMENT_LENGTH, MAX_PLACE_NAME_LENGTH
)


def strip_filter(value):
    return value.strip() if isinstance(value, str) else value


def blank_to_none(value):
    return value or None


class LoginForm(FlaskForm):
    username = StringField('Username', validators=[DataRequired(), Length(max=32)], filters=[strip_filter])
    password = PasswordField('Password', validators=[DataRequired()])


class MovementForm(FlaskForm):
    bristol_type = IntegerField('Bristol type', validators=[
        InputRequired(message='Valid bristol_type (1-7) is required'),
        NumberRange(min=BRISTOL_TYPES.start, max=BRISTOL_TYPES.stop - 1,
                    message='Valid bristol_type (1-7) is required'),
    ])
    pre_weight = FloatField('Pre weight', validators=[Optional(), NumberRange(min=0)])
    post_weight = FloatField('Post weight', validators=[Optional(), NumberRange(min=0)])
    weight_unit = SelectField('Weight unit', choices=WEIGHT_UNITS, default='lbs', validate_choice=True)


class LocationForm(FlaskForm):
    movement_log_id = IntegerField('Movement log', validators=[
        InputRequired(message='movement_log_id, latitude, and longitude are required')
    ])
    # NumberRange also rejects a missing value, so 0.0 still counts as present
    latitude = FloatField('Latitude', validators=[
        NumberRange(min=-90, max=90, message='latitude must be a number within [-90, 90]')
    ])
    longitude = FloatField('Longitude', validators=[
        NumberRange(min=-180, max=180, message='longitude must be a number within [-180, 180]')
    ])
    place_name = StringField('Place name', validators=[Optional(), Length(max=MAX_PLACE_NAME_LENGTH)],
                             filters=[strip_filter, blank_to_none])


class PlaceNameForm(FlaskForm):
    place_name = StringField('Place name', validators=[Optional(), Length(max=MAX_PLACE_NAME_LENGTH)],
                             filters=[strip_filter, blank_to_none])


class RatingForm(FlaskForm):
    rating = IntegerField('Rating', validators=[
        InputRequired(message='rating must be an integer between 1 and 5'),
        NumberRange(min=MIN_RATING, max=MAX_RATING, message='rating must be an integer between 1 and 5'),
    ])


class CommentForm(FlaskForm):
    body = TextAreaField('Comment', validators=[
        DataRequired(message='Comment body is required'),
        Length(max=MAX_COMMENT_LENGTH),
    ], filters=[strip_filter])
