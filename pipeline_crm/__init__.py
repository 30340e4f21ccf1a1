"""Sales-pipeline CRM: prospects, stage board and field-level change history."""

__version__ = "1.0.0"
