"""Tests for dialect-dependent table naming."""

from hwboard.common.base import get_table_args, get_table_ref, schemas_supported
from hwboard.common.database import DatabaseManager
from hwboard.domains.homework.models import Assignment


class TestTableNaming:
    """Table layout follows settings.database_url (sqlite in the test env)."""

    def test_sqlite_settings_drop_schemas(self):
        assert schemas_supported() is False
        assert get_table_args(schema="homework") == ()
        assert get_table_ref("assignments", schema="homework") == "assignments.id"
        assert get_table_ref("students", schema="homework", column="name") == "students.name"

    def test_models_built_without_schema(self):
        assert Assignment.__table__.schema is None
        assert Assignment.__table__.fullname == "assignments"

    def test_manager_url_does_not_change_layout(self):
        manager = DatabaseManager("postgresql+asyncpg://u:p@localhost/hwboard")
        assert manager.is_sqlite is False
        # 表结构在导入时已按 settings 确定
        assert Assignment.__table__.schema is None
