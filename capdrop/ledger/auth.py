"""
Admin gate for configuration and withdrawal operations.
"""

from capdrop.core.exceptions import Unauthorized
from capdrop.core.models import Config


def require_admin(caller: str, config: Config) -> None:
    """Raise Unauthorized unless caller is the configured admin. No side effects."""
    if caller != config.admin:
        raise Unauthorized("Unauthorized", {"caller": caller})
