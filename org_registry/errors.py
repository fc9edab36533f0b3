"""
Registry Errors

Exception hierarchy shared by the naming, registry and sweep modules.
"""


class RegistryError(Exception):
    """Base class for all org_registry failures."""


class InvalidIdentityError(RegistryError, ValueError):
    """Project short name does not match ^[a-z0-9-]{3,50}$."""


class CorruptRegistryError(RegistryError):
    """Registry file exists but is not a valid account mapping."""


class IncompleteRegistryError(RegistryError):
    """One or more of dev/staging/prod has no account id."""


class RegistryIOError(RegistryError):
    """Registry file could not be read or written."""


class RegionSweepError(RegistryError):
    """Every region in a sweep failed."""

    def __init__(self, message: str, failures: dict[str, Exception]):
        super().__init__(message)
        self.failures = failures
