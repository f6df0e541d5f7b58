"""
Authorization rules: roles and the capability table.
"""

from lms.auth.permissions import Role, Capability, CAPABILITIES, authorize, can, is_admin

__all__ = ["Role", "Capability", "CAPABILITIES", "authorize", "can", "is_admin"]
