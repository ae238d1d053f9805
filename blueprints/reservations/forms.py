"""
Reservation forms using Flask-WTF.
"""

from flask_wtf import FlaskForm
from wtforms import StringField, TextAreaField, SelectField, DateTimeLocalField
from wtforms.validators import DataRequired, Length, Optional


class ReservationForm(FlaskForm):
    """Back-office reservation creation form."""

    title = StringField('Titre', validators=[
        DataRequired(message='Le titre est requis'),
        Length(max=200)
    ])

    description = TextAreaField('Description', validators=[
        Optional(),
        Length(max=2000)
    ])

    location_id = SelectField('Lieu', coerce=int, validators=[
        DataRequired(message='Le lieu est requis')
    ])

    start_at = DateTimeLocalField('Début', format='%Y-%m-%dT%H:%M', validators=[
        DataRequired(message='La date de début est requise')
    ])

    end_at = DateTimeLocalField('Fin', format='%Y-%m-%dT%H:%M', validators=[
        DataRequired(message='La date de fin est requise')
    ])


class RejectForm(FlaskForm):
    """Rejection reason form."""

    reason = TextAreaField('Motif du refus', validators=[
        DataRequired(message='Le motif du refus est requis'),
        Length(max=1000)
    ])
