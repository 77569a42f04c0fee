from sqlalchemy import Column, String, Text, UniqueConstraint

from rolegraph.core.rbac.permissions import namespace
from rolegraph.db.base import RecordMixin


def build_permission_model(base, table_name: str):
    class Permission(RecordMixin, base):
        __tablename__ = table_name
        __table_args__ = (
            UniqueConstraint("name", "operation", name=f"uq_{table_name}_name_operation"),
        )

        name = Column(String(255), nullable=False, index=True)
        operation = Column(String(16), nullable=False)
        display_name = Column(String(255), nullable=False)
        description = Column(Text, nullable=True)

        editable_fields = ("name", "operation", "display_name", "description", "extra")

        @property
        def namespace(self) -> str:
            return namespace(self.name, self.operation)

    return Permission
