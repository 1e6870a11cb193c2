"""Seed the static role catalog on startup.

Idempotent: roles already present are left untouched, missing ones are
inserted. Role assignments reference ``roles.code``, so this must run
before the first registration.
"""

import logging

from sqlalchemy.orm import Session

logger = logging.getLogger(__name__)


def seed_roles(db: Session) -> int:
    """Insert any catalog roles missing from the ``roles`` table.

    Args:
        db: An open SQLAlchemy session.

    Returns:
        Number of roles inserted (0 if all were present).
    """
    from ..models.user import Role
    from ..services.permission_service import ROLE_CATALOG

    existing = {code for (code,) in db.query(Role.code).all()}
    inserted = 0

    for code, (name, description) in ROLE_CATALOG.items():
        if code in existing:
            continue
        db.add(Role(code=code, name=name, description=description))
        inserted += 1

    if inserted:
        db.commit()
        logger.info("Seeded %d roles", inserted)
    else:
        logger.debug("Role catalog already present, skipping seed")

    return inserted
