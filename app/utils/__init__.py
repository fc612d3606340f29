"""Utility functions"""

from app.utils.pagination import paginate
from app.utils.validators import validate_object_id

__all__ = ["paginate", "validate_object_id"]
