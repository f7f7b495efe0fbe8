from flowmetrics.schemas.base import BaseSchema


class HierarchyNode(BaseSchema):
    key: str
    type_label: str = ""
    parent_key: str | None = None


class Ancestors(BaseSchema):
    """Nearest ancestor per organizational level; each slot is independent."""

    epic: str | None = None
    story: str | None = None
    initiative: str | None = None
    key_result: str | None = None
    objective: str | None = None
