from resto_admin.models.table_column_state import TableColumnState  # noqa: F401
