from datetime import datetime
from sqlalchemy import Column, Integer, String, Text, DateTime
from sqlalchemy.types import JSON as GenericJSON
from database import Base


class Comic(Base):
    __tablename__ = "comics"

    id = Column(Integer, primary_key=True, index=True)
    title = Column(String, unique=True, nullable=False, index=True)
    description = Column(Text, nullable=False, default="")
    genre = Column(String, nullable=False, default="")
    year = Column(Integer, nullable=True)
    media_urls = Column(GenericJSON, nullable=False, default=list)  # ["https://res.cloudinary.com/..."]
    created_at = Column(DateTime, default=datetime.utcnow, nullable=False)
