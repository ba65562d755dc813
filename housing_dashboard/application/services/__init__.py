from housing_dashboard.application.services.record_source import (
    InMemoryRecordSource,
    Record,
    RecordSource,
)

__all__ = ["InMemoryRecordSource", "Record", "RecordSource"]
