from sqlalchemy import JSON, Column, String

from rolegraph.db.base import RecordMixin


def build_user_model(base, table_name: str):
    class User(RecordMixin, base):
        __tablename__ = table_name

        user_name = Column(String(255), unique=True, nullable=False, index=True)
        roles = Column(JSON, nullable=False, default=list)

        editable_fields = ("user_name", "extra")

    return User
