"""Rendering of row values for statements.

Statements sent to a store always bind values as parameters. The literal
rendering below reproduces the quoting used in log lines and error context,
where a human needs to read the statement that was attempted:

- a value containing a double quote is wrapped in single quotes
- any other value is wrapped in double quotes

This embeds, it does not escape. A value holding both quote characters has no
safe rendering; `encoding_limitation` reports such values so the rendered
statement is flagged instead of passing for valid.
"""

from dataclasses import dataclass, field

from .errors import EncodingLimitation


def is_empty(value) -> bool:
    """Empty cells do not take part in row matching. NULL counts as empty."""
    if value is None:
        return True
    if isinstance(value, (str, bytes, bytearray)):
        return len(value) == 0
    return False


def value_to_text(value) -> str:
    if value is None:
        return ''
    if isinstance(value, (bytes, bytearray)):
        return bytes(value).decode('utf-8', errors='replace')
    return str(value)


def encode_literal(value) -> str:
    text = value_to_text(value)
    if '"' in text:
        return f"'{text}'"
    return f'"{text}"'


def encoding_limitation(columns, values):
    """EncodingLimitation for the first value without a safe literal, or None."""
    for column, value in zip(columns, values):
        text = value_to_text(value)
        if '"' in text and "'" in text:
            return EncodingLimitation(f'value of column {column} contains both quote characters: {text!r}')
    return None


@dataclass(frozen=True)
class Predicate:
    """Conjunction of `column = value` clauses over the non-empty cells of a row."""
    columns: tuple = field(default_factory=tuple)
    values: tuple = field(default_factory=tuple)

    @property
    def is_empty(self):
        return not self.columns

    def to_sql(self, dialect) -> str:
        return ' AND '.join(
            f'{dialect.quote_identifier(column)} = {dialect.placeholder}' for column in self.columns
        )

    @property
    def params(self) -> tuple:
        return self.values

    def render(self) -> str:
        return ' and '.join(
            f'{column} = {encode_literal(value)}' for column, value in zip(self.columns, self.values)
        )


def build_equality_predicate(columns, values) -> Predicate:
    assert len(columns) == len(values), f'row has {len(values)} values for {len(columns)} columns'
    pairs = [(c, v) for c, v in zip(columns, values) if not is_empty(v)]
    return Predicate(
        columns=tuple(c for c, _ in pairs),
        values=tuple(v for _, v in pairs),
    )


def render_insert(table_name, columns, values) -> str:
    column_names = ','.join(columns)
    row_values = ','.join(encode_literal(v) for v in values)
    return f'INSERT INTO {table_name} ({column_names}) VALUES ({row_values})'


def render_select(table_name, predicate: Predicate) -> str:
    if predicate.is_empty:
        return f'SELECT * FROM {table_name}'
    return f'SELECT * FROM {table_name} WHERE {predicate.render()}'
