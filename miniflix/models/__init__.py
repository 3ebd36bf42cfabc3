from miniflix.database import Base
from miniflix.models.user import User
from miniflix.models.content import Content
from miniflix.models.viewing_history import ViewingHistory

# This ensures all models are registered with Base.metadata
__all__ = ["Base", "User", "Content", "ViewingHistory"]
