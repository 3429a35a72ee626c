from app.db.session import Base, engine

# Import every model so Base.metadata knows about all tables
from app.models.room import Room  # noqa: F401
from app.models.guest import Guest  # noqa: F401
from app.models.discounts import Package, Promotion, Coupon  # noqa: F401
from app.models.booking import Booking  # noqa: F401
from app.models.payment import Payment  # noqa: F401
from app.models.workflow_log import BookingWorkflowLog  # noqa: F401


def init_db(bind=None):
    """Create missing tables."""
    Base.metadata.create_all(bind=bind or engine)
