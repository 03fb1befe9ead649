from dataclasses import dataclass, field
from typing import Any


@dataclass(frozen=True)
class TableField:
    """Column metadata. Only name and position take part in matching."""
    name: str = ''
    field_type: str = ''
    default_value: Any = None
    primary_key: bool = False
    position: int = 0


@dataclass(frozen=True)
class TableStructure:
    """Backend independent view of a table.

    Concrete backends subclass this with their own catalog attributes; the
    replication engine only relies on table_name, fields and field_names.
    """
    table_name: str = ''
    fields: tuple = field(default_factory=tuple)

    @property
    def field_names(self) -> list[str]:
        return [f.name for f in self.fields]

    def get_field(self, field_name):
        for f in self.fields:
            if f.name == field_name:
                return f
        return None


@dataclass(frozen=True)
class Schema:
    store_name: str = ''
    tables: tuple = field(default_factory=tuple)

    @property
    def table_names(self) -> list[str]:
        return [t.table_name for t in self.tables]

    def get_table(self, table_name):
        for table in self.tables:
            if table.table_name == table_name:
                return table
        return None
