from datetime import datetime
from sqlalchemy import Column, Integer, String, Text, Date, DateTime, Boolean
from sqlalchemy.types import JSON as GenericJSON
from database import Base


class UpcomingBook(Base):
    __tablename__ = "upcoming_books"

    id = Column(Integer, primary_key=True, index=True)
    title = Column(String, unique=True, nullable=False, index=True)
    author = Column(String, nullable=False, default="")
    description = Column(Text, nullable=False, default="")
    genre = Column(String, nullable=False, default="")
    release_date = Column(Date, nullable=True)
    status = Column(String(20), nullable=False, default="upcoming")  # 'upcoming' | 'released' | ...
    pre_order = Column(Boolean, nullable=False, default=False)
    media_urls = Column(GenericJSON, nullable=False, default=list)
    created_at = Column(DateTime, default=datetime.utcnow, nullable=False)
