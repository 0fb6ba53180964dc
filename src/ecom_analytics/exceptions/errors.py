class ReportingError(Exception):
    """Base exception for ecom_analytics."""

class DataIngestionError(ReportingError):
    """A dataset file is missing, unreadable, or lacks a required column."""

class SchemaValidationError(ReportingError):
    """The schema registry YAML is inconsistent (bad key, dangling or cyclic foreign key)."""

class DataLoadError(ReportingError):
    """The store rejected rows at load time, e.g. an orphan foreign key."""

class UnknownMetricError(ReportingError):
    pass

class ReportParameterError(ReportingError):
    """A metric parameter is unknown, malformed or out of range."""

class QueryExecutionError(ReportingError):
    """The store failed a query, or returned a result without the metric's declared columns."""

class ExportError(ReportingError):
    pass
