from sqlalchemy.orm import declarative_base

# Create base class for SQLAlchemy models
Base = declarative_base()
