from sqlalchemy import JSON, Column, String, Text

from rolegraph.db.base import RecordMixin


def build_role_model(base, table_name: str):
    class Role(RecordMixin, base):
        __tablename__ = table_name

        name = Column(String(255), unique=True, nullable=False, index=True)
        display_name = Column(String(255))
        description = Column(Text, nullable=True)
        # Id lists with set semantics; always reassigned, never mutated in place
        inherit_roles = Column(JSON, nullable=False, default=list)
        permissions = Column(JSON, nullable=False, default=list)

        editable_fields = ("name", "display_name", "description", "extra")

    return Role
