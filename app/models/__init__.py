from app.db.base_class import Base
from app.models.release import ReleaseDocument
