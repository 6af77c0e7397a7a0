from __future__ import annotations


class TopologyError(Exception):
    pass


class ValidationRejected(TopologyError):
    """A user edit that would break an invariant. The graph stays untouched."""


class InvalidNameError(ValidationRejected):
    pass


class NameCollisionError(ValidationRejected):
    pass


class NotFoundError(ValidationRejected):
    pass


class LinkError(ValidationRejected):
    pass


class LagError(ValidationRejected):
    pass


class EsiLagError(ValidationRejected):
    pass


class TemplateError(ValidationRejected):
    pass


class FabricError(ValidationRejected):
    pass


class ImportFailed(TopologyError):
    """YAML text could not be turned into a graph."""
