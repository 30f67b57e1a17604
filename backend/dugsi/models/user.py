from sqlalchemy import Column, Text
from sqlalchemy.orm import relationship

from dugsi.database import Base


class User(Base):
    __tablename__ = "users"

    id = Column(Text, primary_key=True)
    first_name = Column(Text, nullable=False)
    last_name = Column(Text, nullable=False)
    email = Column(Text, nullable=False, unique=True, index=True)
    phone = Column(Text)
    password_hash = Column(Text, nullable=False)
    role = Column(Text, nullable=False, default="superadmin")
    created_at = Column(Text, nullable=False)
    updated_at = Column(Text, nullable=False)

    documents = relationship("Document", back_populates="owner")
