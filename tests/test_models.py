"""DDL emitted for the production dialects."""
from sqlalchemy.dialects import mysql, postgresql
from sqlalchemy.schema import CreateTable

from orgstruct.models import Department


def _ddl(dialect):
    return str(CreateTable(Department.__table__).compile(dialect=dialect))


class TestDepartmentsTableDDL:
    def test_mysql_parent_key_is_not_stored(self):
        # MySQL refuses ON DELETE CASCADE on the base column of a STORED column
        ddl = _ddl(mysql.dialect())
        assert "GENERATED ALWAYS AS (coalesce(parent_id, 0))" in ddl
        assert "ON DELETE CASCADE" in ddl
        assert "STORED" not in ddl.upper()

    def test_mysql_name_is_case_sensitive(self):
        assert "utf8mb4_bin" in _ddl(mysql.dialect())

    def test_postgresql_parent_key_is_stored(self):
        assert "GENERATED ALWAYS AS (coalesce(parent_id, 0)) STORED" in _ddl(postgresql.dialect())
