"""Default role seeding for fresh installs and tests."""

import logging
from typing import Dict

from sqlalchemy.orm import Session

from reviewflow.core.rbac.roles import DEFAULT_ROLES
from reviewflow.db.models import Role

logger = logging.getLogger(__name__)


def seed_default_roles(db: Session, *, sync_permissions: bool = False) -> Dict[str, Role]:
    """
    Make sure every default role exists and return them keyed like ``DEFAULT_ROLES``.

    Existing roles are left alone unless ``sync_permissions`` is set, in which
    case system roles get the current default permission list.
    """
    names = [config["name"] for config in DEFAULT_ROLES.values()]
    existing = {r.name: r for r in db.query(Role).filter(Role.name.in_(names)).all()}

    roles: Dict[str, Role] = {}
    for key, config in DEFAULT_ROLES.items():
        role = existing.get(config["name"])
        if role is None:
            role = Role(
                name=config["name"],
                permissions=list(config["permissions"]),
                is_system=config["is_system"],
            )
            db.add(role)
            logger.info("Seeded role %s", config["name"])
        elif sync_permissions and role.is_system:
            role.permissions = list(config["permissions"])
        roles[key] = role

    db.flush()
    return roles
