from sqlalchemy import Column, Integer, String, Boolean, Text, ForeignKey
from app.database import Base, TimestampMixin


class DocType(Base, TimestampMixin):
    """Document type definition. Global, keyed by name."""
    __tablename__ = "doc_type"

    id = Column(Integer, primary_key=True, index=True)
    name = Column(String, unique=True, nullable=False)
    module = Column(String, nullable=False)
    is_single = Column(Boolean, nullable=False, default=False)
    is_child = Column(Boolean, nullable=False, default=False)
    description = Column(Text, nullable=True)


class DocPerm(Base, TimestampMixin):
    """Role permissions on a document type. Id is "{doc_type}-{role}"."""
    __tablename__ = "doc_perm"

    id = Column(String, primary_key=True)
    doc_type_name = Column(String, ForeignKey("doc_type.name", ondelete="CASCADE"), nullable=False, index=True)
    role = Column(String, nullable=False)
    read = Column(Boolean, nullable=False, default=True)
    write = Column(Boolean, nullable=False, default=False)
    create = Column(Boolean, nullable=False, default=False)
    delete = Column(Boolean, nullable=False, default=False)
    submit = Column(Boolean, nullable=False, default=False)
    cancel = Column(Boolean, nullable=False, default=False)
    amend = Column(Boolean, nullable=False, default=False)
    report = Column(Boolean, nullable=False, default=False)
