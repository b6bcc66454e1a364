"""
Error taxonomy for the query pipeline.

Every failure that crosses a stage boundary is one of these.  The
orchestrator maps them onto terminal states; the API maps terminal
states onto HTTP status codes.  Detail stays in the server logs.
"""

from __future__ import annotations


class PipelineError(Exception):
    """Base class for all pipeline errors."""

    kind: str = "pipeline"


class QueryValidationError(PipelineError):
    """Empty or missing query at the boundary (client error)."""

    kind = "validation"


class RoutingFailure(PipelineError):
    """The classifier answered, but not in the expected structure."""

    kind = "routing"


class ServiceUnavailable(PipelineError):
    """The classification provider timed out or could not be reached."""

    kind = "service_unavailable"


class RetrievalFailure(PipelineError):
    """Embedding or vector-store failure while searching a partition."""

    kind = "retrieval"


class SynthesisFailure(PipelineError):
    """Answer generation failed, timed out or returned nothing."""

    kind = "synthesis"


class ConfigurationError(PipelineError):
    """
    Deployment defect, e.g. a routable topic with no registered partition.

    Fatal: surfaced to the caller like any other failure but logged at
    CRITICAL so it can be alerted on separately.
    """

    kind = "configuration"


RECOVERABLE_ERRORS: tuple[type[PipelineError], ...] = (
    RoutingFailure,
    ServiceUnavailable,
    RetrievalFailure,
    SynthesisFailure,
)
