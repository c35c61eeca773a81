"""Database base class and model imports."""
from sqlalchemy.orm import declarative_base

Base = declarative_base()

# Import all models here for Alembic to detect them
from clubcheckin.db.models.event import Event  # noqa: F401, E402
from clubcheckin.db.models.membership import ClubMembership  # noqa: F401, E402
from clubcheckin.db.models.checkin_session import CheckInSession  # noqa: F401, E402
from clubcheckin.db.models.checkin import CheckIn  # noqa: F401, E402
