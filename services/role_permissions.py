"""
Role -> permission table used when materialising user documents.

super_admin carries the wildcard permission.
"""

from typing import Dict, Iterable, List

ROLE_PERMISSIONS: Dict[str, List[str]] = {
    "super_admin": ["*"],
    "admin": [
        "users.read", "users.write", "users.delete",
        "projects.read", "projects.write", "projects.delete",
        "deals.read", "deals.write", "deals.delete",
        "invoices.read", "invoices.write", "invoices.delete",
        "reports.read", "reports.write",
        "settings.read", "settings.write",
    ],
    "manager": [
        "users.read", "users.write",
        "projects.read", "projects.write",
        "deals.read", "deals.write",
        "invoices.read",
        "reports.read",
    ],
    "employee": [
        "projects.read",
        "tasks.read", "tasks.write",
        "timesheets.read", "timesheets.write",
        "profile.read", "profile.write",
    ],
    "hr": [
        "users.read", "users.write",
        "candidates.read", "candidates.write",
        "attendance.read", "attendance.write",
        "payroll.read",
    ],
    "accountant": [
        "invoices.read", "invoices.write",
        "expenses.read", "expenses.write",
        "reports.read", "reports.write",
        "payroll.read", "payroll.write",
    ],
    "sales": [
        "deals.read", "deals.write",
        "clients.read", "clients.write",
        "quotes.read", "quotes.write",
        "reports.read",
    ],
    "client": [
        "projects.read",
        "invoices.read",
        "tickets.read", "tickets.write",
    ],
    "candidate": [
        "profile.read", "profile.write",
        "applications.read", "applications.write",
    ],
}


def permissions_for_roles(roles: Iterable[str]) -> List[str]:
    """Sorted union of the permissions of every known role"""
    permissions = set()
    for role in roles:
        permissions.update(ROLE_PERMISSIONS.get(role, []))
    return sorted(permissions)
