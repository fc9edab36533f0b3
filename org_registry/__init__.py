from .account_registry import (
    RegistrySnapshot,
    ReplacedAccountEntry,
    is_account_allowed,
    load,
    member_account_ids,
    require_complete,
    save,
)
from .caller_identity import CallerIdentity
from .config import ProjectConfig
from .errors import (
    CorruptRegistryError,
    IncompleteRegistryError,
    InvalidIdentityError,
    RegionSweepError,
    RegistryError,
    RegistryIOError,
)
from .identity import ProjectIdentity, validate_environment
from .name_deriver import DerivedNames, derive, title_case
from .pattern_matcher import PatternMatcher, matches
from .region_sweeper import RegionSweeper, SweepResult

__all__ = [
    "RegistrySnapshot",
    "ReplacedAccountEntry",
    "is_account_allowed",
    "load",
    "member_account_ids",
    "require_complete",
    "save",
    "CallerIdentity",
    "ProjectConfig",
    "CorruptRegistryError",
    "IncompleteRegistryError",
    "InvalidIdentityError",
    "RegionSweepError",
    "RegistryError",
    "RegistryIOError",
    "ProjectIdentity",
    "validate_environment",
    "DerivedNames",
    "derive",
    "title_case",
    "PatternMatcher",
    "matches",
    "RegionSweeper",
    "SweepResult",
]
