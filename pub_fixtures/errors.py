"""Fatal errors raised by the fixtures refresh pipeline.

Recoverable upstream failures are returned as values (see
``pub_fixtures.ingestion.sportsdb_client``); only the errors below end a run.
"""

from __future__ import annotations


class PipelineError(RuntimeError):
    status_code = 500
    label = "Failed to refresh fixtures"


class ConfigurationError(PipelineError):
    status_code = 400
    label = "Invalid configuration"


class StorageError(PipelineError):
    status_code = 500
    label = "Failed to store fixtures"


class RefreshInProgressError(PipelineError):
    status_code = 409
    label = "Refresh already running"
