# This project was developed with assistance from AI tools.
__version__ = "0.1.0"

from .database import Base, SessionLocal, get_db
from .enums import (
    ActivityAction,
    DealStatus,
    DocumentStatus,
    DocumentType,
)
from .models import (
    ActivityLog,
    Deal,
    Document,
)

__all__ = [
    "Base",
    "SessionLocal",
    "get_db",
    "__version__",
    # Enums
    "ActivityAction",
    "DealStatus",
    "DocumentStatus",
    "DocumentType",
    # Models
    "ActivityLog",
    "Deal",
    "Document",
]
