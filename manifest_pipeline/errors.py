from __future__ import annotations


class PipelineError(Exception):
    """Base class for every failure a pipeline stage can report."""

    stage = "pipeline"

    def __init__(self, detail: str):
        super().__init__(detail)
        self.detail = detail


class ConfigurationError(PipelineError):
    stage = "configuration"


class PipelineCancelled(PipelineError):
    stage = "pipeline"


# Metadata resolver


class RemoteUnavailable(PipelineError):
    stage = "resolve"


class InvalidEnvelope(PipelineError):
    stage = "resolve"


class RemoteRejected(PipelineError):
    stage = "resolve"

    def __init__(self, detail: str, error_code: int | None = None):
        super().__init__(detail)
        self.error_code = error_code


# Archive fetcher


class TransportError(PipelineError):
    stage = "fetch"


class UnexpectedStatus(PipelineError):
    stage = "fetch"

    def __init__(self, detail: str, status_code: int | None = None):
        super().__init__(detail)
        self.status_code = status_code


class WriteError(PipelineError):
    stage = "fetch"


# Archive extractor


class CorruptArchive(PipelineError):
    stage = "extract"


class EmptyArchive(PipelineError):
    stage = "extract"


class ExtractionIO(PipelineError):
    stage = "extract"


# Store inspector


class StoreUnreadable(PipelineError):
    stage = "inspect"


class UnknownTable(PipelineError):
    stage = "inspect"

    def __init__(self, detail: str, table: str | None = None):
        super().__init__(detail)
        self.table = table


__all__ = [
    "PipelineError",
    "ConfigurationError",
    "PipelineCancelled",
    "RemoteUnavailable",
    "InvalidEnvelope",
    "RemoteRejected",
    "TransportError",
    "UnexpectedStatus",
    "WriteError",
    "CorruptArchive",
    "EmptyArchive",
    "ExtractionIO",
    "StoreUnreadable",
    "UnknownTable",
]
