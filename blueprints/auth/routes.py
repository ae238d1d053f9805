"""
Authentication routes: login, logout, profile.
Only administrators and CEE members may open a back-office session.
"""

from flask import render_template, redirect, url_for, flash, request, Blueprint, current_app
from flask_login import login_user, logout_user, login_required, current_user
from urllib.parse import urlparse

from blueprints.auth.forms import LoginForm, ProfileForm, ChangePasswordForm
from models.user import (User, get_user_by_email, get_user_by_id, update_last_login,
                         update_own_profile, update_password, check_password)
from utils.errors import ReservationAppError
from utils.messages import MESSAGES
from utils.permissions import VALIDATOR_ROLES, actor_from_user

auth_bp = Blueprint('auth', __name__, template_folder='../../templates/auth')


@auth_bp.route('/login', methods=['GET', 'POST'])
def login():
    """
    Login route with form handling.

    GET: Display login form
    POST: Process login credentials
    """
    # Redirect if already logged in
    if current_user.is_authenticated:
        return redirect(url_for('dashboard.index'))

    form = LoginForm()

    if form.validate_on_submit():
        user_dict = get_user_by_email(form.email.data)

        # Check credentials
        if user_dict is None or not check_password(user_dict, form.password.data):
            flash(MESSAGES['invalid_credentials'], 'error')
            return redirect(url_for('auth.login'))

        # Check if user is active
        if not user_dict.get('active'):
            flash(MESSAGES['account_disabled'], 'error')
            return redirect(url_for('auth.login'))

        # Back office is for validators only
        if user_dict['role'] not in VALIDATOR_ROLES:
            current_app.logger.info(f"Login refused for {user_dict['email']} (role {user_dict['role']})")
            flash(MESSAGES['access_restricted'], 'error')
            return redirect(url_for('auth.login'))

        user = User(user_dict)
        login_user(user, remember=form.remember_me.data)
        update_last_login(user.id)

        flash(MESSAGES['login_success'].format(name=user.name), 'success')

        # Redirect to next page or default
        next_page = request.args.get('next')
        if not next_page or urlparse(next_page).netloc != '':
            next_page = url_for('dashboard.index')

        return redirect(next_page)

    return render_template('login.html', form=form)


@auth_bp.route('/logout')
@login_required
def logout():
    """Logout current user."""
    logout_user()
    flash(MESSAGES['logout_success'], 'success')
    return redirect(url_for('auth.login'))


@auth_bp.route('/profile')
@login_required
def profile():
    """Display user profile."""
    user_dict = get_user_by_id(current_user.id)

    return render_template('profile.html', user=user_dict)


@auth_bp.route('/profile/edit', methods=['GET', 'POST'])
@login_required
def profile_edit():
    """Edit own name and email."""
    form = ProfileForm()

    if form.validate_on_submit():
        try:
            update_own_profile(actor_from_user(current_user), form.name.data, form.email.data)
            flash(MESSAGES['profile_updated'], 'success')
            return redirect(url_for('auth.profile'))
        except ReservationAppError as e:
            flash(str(e), 'error')

    # Pre-populate form
    user_dict = get_user_by_id(current_user.id)
    if request.method == 'GET':
        form.name.data = user_dict['name']
        form.email.data = user_dict['email']

    return render_template('profile_edit.html', form=form, user=user_dict)


@auth_bp.route('/profile/change-password', methods=['GET', 'POST'])
@login_required
def change_password():
    """Change user password."""
    form = ChangePasswordForm()

    if form.validate_on_submit():
        # Verify current password
        user_dict = get_user_by_email(current_user.email)
        if not check_password(user_dict, form.current_password.data):
            flash('Le mot de passe actuel est incorrect', 'error')
            return render_template('change_password.html', form=form)

        if update_password(current_user.id, form.new_password.data):
            flash(MESSAGES['password_updated'], 'success')
            return redirect(url_for('auth.profile'))

        flash('Erreur lors du changement de mot de passe', 'error')

    return render_template('change_password.html', form=form)
