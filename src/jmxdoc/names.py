"""Object name legality checks.

Names are 1-49 ASCII characters drawn from letters, digits and
``_=.,[]():;#@!$%*+<>?-``. Target sets additionally may not be called
"Predefined". Media folder and file names used by movie/image targets follow
their own, narrower rule.
"""

import re
from typing import Any

from jmxdoc.domain.exceptions import ObjectNameError
from jmxdoc.vocabulary import MEDIA_NAME_MAX_LENGTH, NAME_CHARSET, NAME_MAX_LENGTH, RESERVED_TARGET_SET_NAME

_NAME_PATTERN = re.compile(f"[{NAME_CHARSET}]+")
_MEDIA_PATTERN = re.compile(r"[A-Za-z0-9_.]+")


def is_legal_name(s: Any) -> bool:
    """Return True if ``s`` satisfies the object naming rules."""
    if not isinstance(s, str):
        return False
    return 0 < len(s) < NAME_MAX_LENGTH and _NAME_PATTERN.fullmatch(s) is not None


def check_name(name: Any, kind: str) -> str:
    """Return ``name`` unchanged or raise ObjectNameError."""
    if not is_legal_name(name):
        raise ObjectNameError(kind, name)
    return name


def check_target_set_name(name: Any) -> str:
    check_name(name, "target set")
    if name == RESERVED_TARGET_SET_NAME:
        raise ObjectNameError("target set", name, reason="name is reserved")
    return name


def is_legal_media_name(s: Any) -> bool:
    """Return True if ``s`` is a legal media folder or file name."""
    if not isinstance(s, str):
        return False
    return 0 < len(s) <= MEDIA_NAME_MAX_LENGTH and _MEDIA_PATTERN.fullmatch(s) is not None
