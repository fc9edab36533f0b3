"""
Account Registry

Persistent environment -> AWS account id mapping (accounts.json).

File format:
  {
    "management": "111111111111",
    "dev": "", "staging": "", "prod": "",
    "_replaced": {
      "dev": {"old_account_id": ..., "old_status": ..., "replaced_date": ..., "reason": ...}
    }
  }

No locking is done: callers must not run two load/save cycles against the
same file concurrently.
"""

import json
import logging
import os
import re
import tempfile
from dataclasses import dataclass, field
from datetime import datetime, timezone
from pathlib import Path
from typing import Any

from .errors import CorruptRegistryError, IncompleteRegistryError, RegistryIOError

logger = logging.getLogger(__name__)
logger.setLevel(logging.INFO)

ENVIRONMENTS = ("management", "dev", "staging", "prod")
MEMBER_ENVIRONMENTS = ("dev", "staging", "prod")
REPLACED_KEY = "_replaced"

ACCOUNT_ID_PATTERN = re.compile(r"^[0-9]{12}$")


@dataclass(frozen=True)
class ReplacedAccountEntry:
    """History record for an environment whose account was recreated."""

    environment: str
    old_account_id: str
    old_status: str
    replaced_date: str
    reason: str = ""

    def to_dict(self) -> dict[str, str]:
        return {
            "old_account_id": self.old_account_id,
            "old_status": self.old_status,
            "replaced_date": self.replaced_date,
            "reason": self.reason or f"Account was {self.old_status}",
        }


@dataclass
class RegistrySnapshot:
    """In-memory view of accounts.json for one load/modify/save cycle."""

    accounts: dict[str, str] = field(default_factory=lambda: {env: "" for env in ENVIRONMENTS})
    replaced: list[ReplacedAccountEntry] = field(default_factory=list)
    extra: dict[str, Any] = field(default_factory=dict)
    # Newest entry appended since load, per environment; only these overwrite on-disk history
    _replaced_this_cycle: dict[str, ReplacedAccountEntry] = field(default_factory=dict, repr=False, compare=False)

    @property
    def management(self) -> str:
        return self.accounts.get("management", "")

    @property
    def dev(self) -> str:
        return self.accounts.get("dev", "")

    @property
    def staging(self) -> str:
        return self.accounts.get("staging", "")

    @property
    def prod(self) -> str:
        return self.accounts.get("prod", "")

    def get(self, environment: str) -> str:
        _check_environment(environment)
        return self.accounts.get(environment, "")

    def is_bound(self, environment: str) -> bool:
        return bool(self.get(environment))

    def bind(self, environment: str, account_id: str) -> None:
        """
        Bind an account id to an unset environment (Unset -> Bound).

        Raises:
            ValueError: If the id is malformed, or the environment is already
                        bound to a different account (use replace()).
        """
        _check_environment(environment)
        _check_account_id(account_id)
        current = self.accounts.get(environment, "")
        if current and current != account_id:
            raise ValueError(
                f"Environment {environment} is already bound to {current}; "
                "use replace() to record the old account"
            )
        self.accounts[environment] = account_id
        logger.info("Bound %s account: %s", environment, account_id)

    def replace(
        self,
        environment: str,
        new_account_id: str,
        old_status: str,
        replaced_date: str | None = None,
    ) -> ReplacedAccountEntry:
        """
        Replace an environment's account, keeping the old one as history
        (Bound -> Replaced -> Bound).

        Args:
            environment: Environment being recreated.
            new_account_id: Account id of the replacement account.
            old_status: Status of the old account (e.g. "SUSPENDED").
            replaced_date: ISO-8601 timestamp; now (UTC) when omitted.

        Returns:
            The history entry appended to the log.
        """
        _check_environment(environment)
        _check_account_id(new_account_id)
        old_account_id = self.accounts.get(environment, "")
        if not old_account_id:
            raise ValueError(f"Environment {environment} has no account to replace; use bind()")

        entry = ReplacedAccountEntry(
            environment=environment,
            old_account_id=old_account_id,
            old_status=old_status,
            replaced_date=replaced_date or datetime.now(timezone.utc).isoformat(),
        )
        self.replaced.append(entry)
        self._replaced_this_cycle[environment] = entry
        self.accounts[environment] = new_account_id
        logger.info(
            "Replaced %s account %s (%s) with %s",
            environment,
            old_account_id,
            old_status,
            new_account_id,
        )
        return entry

    def latest_replacement(self, environment: str) -> ReplacedAccountEntry | None:
        """Most recent history entry for an environment, by timestamp."""
        entries = [e for e in self.replaced if e.environment == environment]
        if not entries:
            return None
        # max() keeps the first of equal timestamps; prefer the later append
        return max(reversed(entries), key=lambda e: _parse_timestamp(e.replaced_date))

    def to_dict(self) -> dict[str, Any]:
        """Serialize to the accounts.json structure."""
        data: dict[str, Any] = dict(self.extra)
        for env in ENVIRONMENTS:
            data[env] = self.accounts.get(env, "")
        replaced = self._latest_by_environment(self.replaced)
        if replaced:
            data[REPLACED_KEY] = {env: entry.to_dict() for env, entry in replaced.items()}
        return data

    def _latest_by_environment(self, entries: list[ReplacedAccountEntry]) -> dict[str, ReplacedAccountEntry]:
        result: dict[str, ReplacedAccountEntry] = {}
        for env in dict.fromkeys(e.environment for e in entries):
            latest = self._replaced_this_cycle.get(env) or self.latest_replacement(env)
            if latest is not None:
                result[env] = latest
        return result


def load(path: str | Path) -> RegistrySnapshot:
    """
    Load the registry file.

    A missing file is the expected state before the first bootstrap and
    yields an empty snapshot.

    Raises:
        CorruptRegistryError: File present but not a valid account mapping.
        RegistryIOError: File present but unreadable.
    """
    path = Path(path)
    try:
        raw = path.read_text(encoding="utf-8")
    except FileNotFoundError:
        logger.info("Registry %s not found, starting with empty accounts", path)
        return RegistrySnapshot()
    except UnicodeDecodeError as e:
        raise CorruptRegistryError(f"Registry {path} is not valid UTF-8: {e}") from e
    except OSError as e:
        raise RegistryIOError(f"Cannot read registry {path}: {e}") from e

    try:
        data = json.loads(raw)
    except json.JSONDecodeError as e:
        raise CorruptRegistryError(f"Registry {path} is not valid JSON: {e}") from e

    snapshot = _snapshot_from_dict(data, path)
    logger.info(
        "Loaded registry from %s (%d of %d member accounts set)",
        path,
        sum(1 for env in MEMBER_ENVIRONMENTS if snapshot.accounts[env]),
        len(MEMBER_ENVIRONMENTS),
    )
    return snapshot


def save(path: str | Path, snapshot: RegistrySnapshot) -> None:
    """
    Write the snapshot atomically (temp file + rename).

    Replacement history already on disk is preserved; only environments
    replaced during this cycle overwrite their `_replaced` entry.

    Raises:
        CorruptRegistryError: Existing file is not a valid registry.
        RegistryIOError: Directory or file could not be written.
    """
    path = Path(path)
    data = snapshot.to_dict()

    existing_history = _read_existing_history(path)
    merged_history = dict(existing_history)
    current = snapshot._latest_by_environment(snapshot.replaced)
    for env, entry in current.items():
        if env in snapshot._replaced_this_cycle or env not in merged_history:
            merged_history[env] = entry.to_dict()
    if merged_history:
        data[REPLACED_KEY] = merged_history
    else:
        data.pop(REPLACED_KEY, None)

    content = json.dumps(data, indent=2) + "\n"
    tmp_name = None
    try:
        path.parent.mkdir(parents=True, exist_ok=True)
        with tempfile.NamedTemporaryFile(
            "w",
            encoding="utf-8",
            dir=path.parent,
            prefix=f".{path.name}.",
            suffix=".tmp",
            delete=False,
        ) as tmp:
            tmp_name = tmp.name
            tmp.write(content)
            tmp.flush()
            os.fsync(tmp.fileno())
        os.replace(tmp_name, path)
        tmp_name = None
    except OSError as e:
        raise RegistryIOError(f"Cannot write registry {path}: {e}") from e
    finally:
        if tmp_name is not None and os.path.exists(tmp_name):
            os.unlink(tmp_name)

    snapshot._replaced_this_cycle.clear()
    logger.info("Saved registry to %s", path)


def require_complete(snapshot: RegistrySnapshot) -> RegistrySnapshot:
    """
    Ensure dev, staging and prod all have account ids.

    The management account is exempt: it may come from credentials at
    runtime instead of the file.

    Raises:
        IncompleteRegistryError: With instructions for the operator.
    """
    missing = [env for env in MEMBER_ENVIRONMENTS if not snapshot.accounts.get(env)]
    if missing:
        raise IncompleteRegistryError(
            f"accounts.json not found or incomplete (missing: {', '.join(missing)}). "
            "Run: ./bootstrap-organization.sh first"
        )
    return snapshot


def is_account_allowed(account_id: str, account_filter: str = "") -> bool:
    """Check an account id against a comma-separated allow-list (empty = allow all)."""
    if not account_filter:
        return True
    allowed = {a.strip() for a in account_filter.split(",") if a.strip()}
    return account_id in allowed


def member_account_ids(snapshot: RegistrySnapshot, account_filter: str = "") -> list[str]:
    """
    Member (dev, staging, prod) account ids, in that order.

    Args:
        snapshot: Loaded registry.
        account_filter: Optional comma-separated allow-list of account ids.

    Returns:
        Non-empty account ids allowed by the filter.
    """
    ids = []
    for env in MEMBER_ENVIRONMENTS:
        account_id = snapshot.accounts.get(env, "")
        if not account_id:
            continue
        if is_account_allowed(account_id, account_filter):
            ids.append(account_id)
        else:
            logger.debug("Skipping %s account %s (not in account filter)", env, account_id)
    return ids


def _snapshot_from_dict(data: Any, path: Path) -> RegistrySnapshot:
    if not isinstance(data, dict):
        raise CorruptRegistryError(f"Registry {path} must contain a JSON object")

    accounts: dict[str, str] = {}
    for env in ENVIRONMENTS:
        value = data.get(env)
        if value is None:
            value = ""
        if not isinstance(value, str):
            raise CorruptRegistryError(f"Registry {path}: '{env}' must be a string, got {value!r}")
        if value and not ACCOUNT_ID_PATTERN.match(value):
            raise CorruptRegistryError(f"Registry {path}: '{env}' is not a 12-digit account id: {value!r}")
        accounts[env] = value

    replaced: list[ReplacedAccountEntry] = []
    history = data.get(REPLACED_KEY) or {}
    if not isinstance(history, dict):
        raise CorruptRegistryError(f"Registry {path}: '{REPLACED_KEY}' must be an object")
    for env, entry in history.items():
        if not isinstance(entry, dict):
            raise CorruptRegistryError(f"Registry {path}: '{REPLACED_KEY}.{env}' must be an object")
        replaced.append(
            ReplacedAccountEntry(
                environment=env,
                old_account_id=str(entry.get("old_account_id") or ""),
                old_status=str(entry.get("old_status") or ""),
                replaced_date=str(entry.get("replaced_date") or ""),
                reason=str(entry.get("reason") or ""),
            )
        )

    extra = {k: v for k, v in data.items() if k not in ENVIRONMENTS and k != REPLACED_KEY}
    return RegistrySnapshot(accounts=accounts, replaced=replaced, extra=extra)


def _read_existing_history(path: Path) -> dict[str, Any]:
    """
    `_replaced` section currently on disk, or {} when there is no file.

    Raises:
        CorruptRegistryError: Existing file is not a valid registry; it is
                              never overwritten in that case.
    """
    try:
        data = json.loads(path.read_text(encoding="utf-8"))
    except FileNotFoundError:
        return {}
    except (UnicodeDecodeError, json.JSONDecodeError) as e:
        raise CorruptRegistryError(f"Existing registry {path} is corrupt, refusing to overwrite: {e}") from e
    except OSError as e:
        raise RegistryIOError(f"Cannot read registry {path}: {e}") from e
    if not isinstance(data, dict):
        raise CorruptRegistryError(f"Existing registry {path} must contain a JSON object, refusing to overwrite")
    history = data.get(REPLACED_KEY) or {}
    if not isinstance(history, dict):
        raise CorruptRegistryError(f"Existing registry {path}: '{REPLACED_KEY}' must be an object")
    return dict(history)


def _parse_timestamp(value: str) -> datetime:
    """ISO-8601 to an aware datetime; naive values are UTC, unparsable ones sort first."""
    text = (value or "").strip()
    if text.endswith(("Z", "z")):
        text = text[:-1] + "+00:00"
    try:
        parsed = datetime.fromisoformat(text)
    except ValueError:
        logger.debug("Unparsable replaced_date %r", value)
        return datetime.min.replace(tzinfo=timezone.utc)
    if parsed.tzinfo is None:
        parsed = parsed.replace(tzinfo=timezone.utc)
    return parsed


def _check_environment(environment: str) -> None:
    if environment not in ENVIRONMENTS:
        raise ValueError(f"Unknown environment {environment!r}; expected one of {', '.join(ENVIRONMENTS)}")


def _check_account_id(account_id: str) -> None:
    if not ACCOUNT_ID_PATTERN.match(account_id or ""):
        raise ValueError(f"Invalid AWS account id {account_id!r}: must be 12 digits")
