"""Version migration of persisted documents.

Persisted documents carry an integer ``version`` in ``[1, CURRENT_VERSION]``.
Older documents are upgraded on load by an ordered list of steps, each keyed
by the version it produces. A step runs when its target version is greater
than the stored version. Steps only append missing trailing fields with fixed
defaults; they never remove or reinterpret existing values.

Version History:
----------------
- 1: Original format
- 2: Trial subsets introduced (no data change)
- 3: Two trailing display settings added to settings.rmv [spotsize flashdur]
- 4: Velocity stabilization window appended to settings.other

Example:
--------
>>> from jmxdoc.migrate import migrate
>>> raw = {"version": 1, "settings": {"rmv": [400, 300, 800, 0], "fix": [2.0, 2.0], "other": [1500, 25, 25, 0, 1, 0, 0]}}
>>> migrate(raw)["settings"]["rmv"]
[400, 300, 800, 0, 0, 1]
"""

import copy
from dataclasses import dataclass
import logging
from typing import Any, Callable, Dict, List, Tuple

from jmxdoc.domain.exceptions import VersionError
from jmxdoc.domain.settings import DEFAULT_OTHER, DEFAULT_RMV

logger = logging.getLogger(__name__)

CURRENT_VERSION = 4

# Fields present in settings vectors before the trailing additions
_RMV_BASE_LENGTH = 4
_OTHER_BASE_LENGTH = 7


@dataclass(frozen=True)
class MigrationStep:
    """One additive upgrade producing ``target_version``."""

    target_version: int
    description: str
    apply: Callable[[Dict[str, Any]], None]


def _pad_trailing(values: Any, base_length: int, defaults: Tuple[Any, ...]) -> Any:
    """Append the defaults for positions ``len(values)..len(defaults)-1``.

    Vectors shorter than ``base_length`` are left alone so validation reports
    them; only the trailing fields introduced by a migration are filled.
    """
    if not isinstance(values, list) or not base_length <= len(values) < len(defaults):
        return values
    return values + list(defaults[len(values) :])


def _settings(raw: Dict[str, Any]) -> Dict[str, Any]:
    settings = raw.get("settings")
    return settings if isinstance(settings, dict) else {}


def _add_subsets(raw: Dict[str, Any]) -> None:
    """Subset objects are new content only; existing trial sets are unchanged."""


def _add_rmv_flash(raw: Dict[str, Any]) -> None:
    settings = _settings(raw)
    if "rmv" in settings:
        settings["rmv"] = _pad_trailing(settings["rmv"], _RMV_BASE_LENGTH, DEFAULT_RMV)


def _add_vstab_window(raw: Dict[str, Any]) -> None:
    settings = _settings(raw)
    if "other" in settings:
        settings["other"] = _pad_trailing(settings["other"], _OTHER_BASE_LENGTH, DEFAULT_OTHER)


MIGRATIONS: Tuple[MigrationStep, ...] = (
    MigrationStep(2, "trial subsets", _add_subsets),
    MigrationStep(3, "settings.rmv spot size and flash duration", _add_rmv_flash),
    MigrationStep(4, "settings.other velocity stabilization window", _add_vstab_window),
)


def check_version(raw: Any) -> int:
    """Return the stored version of ``raw``.

    Raises:
        VersionError: Missing, non-integer or outside [1, CURRENT_VERSION]
    """
    if not isinstance(raw, dict):
        raise VersionError(None, CURRENT_VERSION)
    version = raw.get("version")
    if isinstance(version, bool) or not isinstance(version, int):
        raise VersionError(version, CURRENT_VERSION)
    if not 1 <= version <= CURRENT_VERSION:
        raise VersionError(version, CURRENT_VERSION)
    return version


def pending_steps(version: int) -> List[MigrationStep]:
    """Steps needed to bring a document at ``version`` up to date, in order."""
    return [step for step in MIGRATIONS if step.target_version > version]


def migrate(raw: Dict[str, Any]) -> Dict[str, Any]:
    """Upgrade a persisted document to CURRENT_VERSION.

    The input is not modified; a deep copy is migrated and returned with its
    ``version`` set to CURRENT_VERSION.
    """
    version = check_version(raw)
    upgraded = copy.deepcopy(raw)
    for step in pending_steps(version):
        step.apply(upgraded)
        logger.info(f"Migrated document v{step.target_version - 1} -> v{step.target_version} ({step.description})")
    upgraded["version"] = CURRENT_VERSION
    return upgraded
