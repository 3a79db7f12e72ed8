"""Error taxonomy for level generation.

ConstraintError is recoverable and never escapes the retry loop that raised it.
GenerationInvariantError aborts a single candidate design; the orchestrator's
candidate pool is the only recovery path. LevelGenerationError is fatal and is
surfaced to the caller once every candidate has failed.
"""


class GenerationError(Exception):
    """Base class for all level generation failures."""


class ConstraintError(GenerationError):
    """A generation step produced something unacceptable and should be retried locally."""


class GenerationInvariantError(GenerationError):
    """A condition that the pipeline guarantees was violated (e.g. no possible exit)."""


class LevelGenerationError(GenerationError):
    """No candidate design survived; the level cannot be produced."""


class TemplateError(ValueError):
    """A room template is malformed (ragged rows, empty layout, bad metadata)."""


__all__ = [
    "GenerationError",
    "ConstraintError",
    "GenerationInvariantError",
    "LevelGenerationError",
    "TemplateError",
]
