from broadcaster.db import Permission, Role

ADMIN_TEAM = "admin"


def admin_permissions() -> list[str]:
	role = Role.team(ADMIN_TEAM)
	return [Permission.read(role), Permission.update(role), Permission.delete(role)]


def build_permissions(account_ids: list[str]) -> list[str]:
	"""read для каждого получателя (в порядке списка) + полный доступ команде admin."""
	permissions = [Permission.read(Role.user(account_id)) for account_id in account_ids]
	permissions.extend(admin_permissions())
	return permissions
