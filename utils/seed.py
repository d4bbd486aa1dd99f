import logging
from typing import List

from models import db
from models.user import Role
from security.rbac import ADMIN, CUSTOMER, PROVIDER

logger = logging.getLogger(__name__)

DEFAULT_ROLES = (CUSTOMER, PROVIDER, ADMIN)

def seed_roles() -> List[str]:
    """Insert any missing default role. Returns the names it created."""
    existing = {name for (name,) in db.session.query(Role.name).all()}
    created = [name for name in DEFAULT_ROLES if name not in existing]
    if not created:
        return []

    db.session.add_all(Role(name=name) for name in created)
    db.session.commit()
    logger.info("seeded roles: %s", ", ".join(created))
    return created
