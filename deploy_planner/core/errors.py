"""Exception types for deploy-planner."""
from typing import List


class DeployPlannerError(Exception):
    """Base class for all deploy-planner errors."""
    pass


class NotFoundError(DeployPlannerError):
    """A referenced resource (or any published version of it) does not exist."""
    pass


class NoMatchingVersionError(DeployPlannerError):
    """No published version satisfies a requested version selector."""
    pass


class MissingReferenceError(DeployPlannerError):
    """An instance spec has no upstream extension reference."""
    pass


class InvalidRefError(DeployPlannerError):
    """An extension reference string could not be parsed."""
    pass


class InvalidSecretKeyError(DeployPlannerError):
    """A secret environment variable key is malformed or reserved."""
    pass


class AggregateConfigurationError(DeployPlannerError):
    """One or more entries of a declarative config section failed."""

    def __init__(self, section: str, source: str, errors: List[Exception]):
        self.section = section
        self.source = source
        self.errors = list(errors)
        messages = "\n".join(f"- {err}" for err in self.errors)
        super().__init__(f"Errors while reading '{section}' in '{source}'\n{messages}")
