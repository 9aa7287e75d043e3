"""Exceptions raised outside the pure scheduling engine."""


class VocabSrsError(Exception):
    """Base class for all vocab-srs errors."""


class IndexInvariantError(VocabSrsError):
    """A CardIndex breaks its ordering or key-consistency invariants."""


class RecordError(VocabSrsError):
    """A stored record decodes as JSON but is missing required fields."""


class TemplateError(VocabSrsError):
    """A bulk import template is malformed."""


class ConfigError(VocabSrsError):
    """A configuration value is invalid."""
