from sqlalchemy import Column, Integer, String, DateTime, Enum as SQLEnum
from sqlalchemy.orm import relationship
from sqlalchemy.sql import func
import enum

from app.core.database import Base


class Brand(str, enum.Enum):
    KILWINS = "kilwins"
    RENOJA = "renoja"


class Store(Base):
    __tablename__ = "stores"

    id = Column(Integer, primary_key=True, index=True)
    code = Column(String(50), unique=True, index=True, nullable=False)
    name = Column(String(255), nullable=False)
    brand = Column(SQLEnum(Brand, values_callable=lambda obj: [e.value for e in obj]), default=Brand.KILWINS, nullable=False)
    created_at = Column(DateTime(timezone=True), server_default=func.now())
    updated_at = Column(DateTime(timezone=True), onupdate=func.now())

    # Relationships
    weekly_entries = relationship("WeeklyEntry", back_populates="store")

    def __repr__(self):
        return f"<Store(id={self.id}, code={self.code}, name={self.name})>"
