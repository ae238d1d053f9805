"""Admin services package."""

from blueprints.admin.services.user_service import (  # noqa: F401
    generate_default_password,
    create_user_account,
)
