def init_db():
    """Create the booking tables (simple dev mode)."""
    from tripflow.db import engine
    from tripflow.models import Base

    Base.metadata.create_all(bind=engine)
