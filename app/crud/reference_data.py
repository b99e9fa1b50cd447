from app.crud.base import CRUDBase
from app.models.doc_type import DocType, DocPerm
from app.models.uom import Uom


class CRUDUom(CRUDBase[Uom]):
    """Global units of measure, unique by code."""
    unique_fields = ("code",)


class CRUDDocType(CRUDBase[DocType]):
    """Global document types, unique by name."""
    unique_fields = ("name",)


class CRUDDocPerm(CRUDBase[DocPerm]):
    """Role permissions with deterministic "{doc_type}-{role}" ids."""
    unique_fields = ("id",)


# Create singleton instances
uom = CRUDUom(Uom)
doc_type = CRUDDocType(DocType)
doc_perm = CRUDDocPerm(DocPerm)
