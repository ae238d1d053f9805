"""
Authentication forms using Flask-WTF.
Provides login and profile editing forms with CSRF protection.
"""

from flask_wtf import FlaskForm
from wtforms import StringField, PasswordField, BooleanField
from wtforms.validators import DataRequired, Email, Length, EqualTo, Regexp


class LoginForm(FlaskForm):
    """Login form with email and password."""

    email = StringField('Email', validators=[
        DataRequired(message="L'email est requis"),
        Email(message="Format d'email invalide")
    ])

    password = PasswordField('Mot de passe', validators=[
        DataRequired(message='Le mot de passe est requis')
    ])

    remember_me = BooleanField('Se souvenir de moi')


class ProfileForm(FlaskForm):
    """Profile editing form."""

    name = StringField('Nom complet', validators=[
        DataRequired(message='Le nom est requis'),
        Length(max=200)
    ])

    email = StringField('Email', validators=[
        DataRequired(message="L'email est requis"),
        Email(message="Format d'email invalide")
    ])


class ChangePasswordForm(FlaskForm):
    """Password change form."""

    current_password = PasswordField('Mot de passe actuel', validators=[
        DataRequired(message='Le mot de passe actuel est requis')
    ])

    new_password = PasswordField('Nouveau mot de passe', validators=[
        DataRequired(message='Le nouveau mot de passe est requis'),
        Length(min=8, message='Le mot de passe doit contenir au moins 8 caractères'),
        Regexp(r'(?=.*[A-Z])', message='Doit contenir au moins une majuscule'),
        Regexp(r'(?=.*[a-z])', message='Doit contenir au moins une minuscule'),
        Regexp(r'(?=.*\d)', message='Doit contenir au moins un chiffre'),
    ])

    confirm_password = PasswordField('Confirmer le mot de passe', validators=[
        DataRequired(message='Veuillez confirmer le mot de passe'),
        EqualTo('new_password', message='Les mots de passe ne correspondent pas')
    ])
