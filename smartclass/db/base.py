from smartclass.db.base_class import Base

# import models so SQLAlchemy registers them on Base.metadata
from smartclass.models import (  # noqa: F401
    assignment,
    attachment,
    classroom,
    enrollment,
    submission,
    user,
)
