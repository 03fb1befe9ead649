class ReplicationError(Exception):
    """Base class for failures raised while reconciling stores.

    Carries enough context (source, destination, table, statement) for an
    operator to locate the failing step from the log line alone.
    """

    def __init__(self, message, source=None, destination=None, table=None, statement=None):
        super().__init__(message)
        self.message = message
        self.source = source
        self.destination = destination
        self.table = table
        self.statement = statement

    def context(self):
        return {
            'source': self.source,
            'destination': self.destination,
            'table': self.table,
            'statement': self.statement,
        }

    def __str__(self):
        details = ', '.join(
            f'{key}={value}' for key, value in self.context().items() if value is not None
        )
        if not details:
            return self.message
        return f'{self.message} ({details})'


class CatalogError(ReplicationError):
    """Schema or column catalog could not be read. Fatal to the whole run."""


class QueryError(ReplicationError):
    """Source read or destination lookup failed. Fatal to the current pair."""


class ApplyError(ReplicationError):
    """Table creation, insert or commit failed. Fatal to the current pair."""


class EncodingLimitation(ApplyError):
    """A cell value cannot be embedded as a statement literal."""
