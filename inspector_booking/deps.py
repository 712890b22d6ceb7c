# inspector_booking/deps.py

from datetime import datetime

from inspector_booking.errors import Forbidden
from inspector_booking.schemas import UserRole

STAFF_ADMIN_ROLES = (UserRole.admin.value, UserRole.manager.value)


def require_inspector_access(user: dict, inspector_id: int):
    # the inspector themself, or an admin/manager acting for them
    if user["id"] != inspector_id and user["role"] not in STAFF_ADMIN_ROLES:
        raise Forbidden("Access denied")


# Dependency: request clock, overridable in tests
def get_now() -> datetime:
    return datetime.now()
