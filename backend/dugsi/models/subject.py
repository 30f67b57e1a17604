from sqlalchemy import Column, Text

from dugsi.database import Base


class Subject(Base):
    __tablename__ = "subjects"

    id = Column(Text, primary_key=True)
    name = Column(Text, nullable=False)
    slug = Column(Text, nullable=False, unique=True)
    desc = Column(Text)
    created_at = Column(Text, nullable=False)
