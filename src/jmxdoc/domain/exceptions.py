"""Exception hierarchy for jmxdoc.

Every failure raised by a document operation derives from JMXError and carries
enough context (object kind, name or index, field) to locate the offending
value. Errors are grouped by the kind of rule that was violated:

- Name errors: illegal or duplicate object names
- Parameter errors: wrong shape, out-of-range or unrecognized parameter values
- Reference errors: a named dependency does not exist in the document
- Structure errors: overlapping tagged sections, bad RV formulas, count mismatches
- Load errors: unparsable document or unsupported version
- Session errors: misuse of the open/close handle, failed saves

Example:
--------
>>> from jmxdoc.domain.exceptions import JMXError, ParameterError
>>> try:
...     raise ParameterError("grating", "rgbcon", 0, reason="not applicable")
... except JMXError as e:
...     print(e.error_code, e.context["parameter"])
PARAMETER_INVALID rgbcon
"""

from typing import Any, Dict, Optional


class JMXError(Exception):
    """Base class for all jmxdoc errors.

    Attributes:
        message: Human-readable description
        context: Structured details (object kind, name, index, field)
        hint: Optional suggestion for fixing the problem
        error_code: Stable identifier for the error category
        stage: Processing stage that raised the error
    """

    error_code = "JMX_ERROR"
    stage = "document"

    def __init__(self, message: str, context: Optional[Dict[str, Any]] = None, hint: Optional[str] = None):
        super().__init__(message)
        self.message = message
        self.context = dict(context or {})
        self.hint = hint

    def with_context(self, **extra: Any) -> "JMXError":
        """Attach extra location details and return self for re-raising."""
        for key, value in extra.items():
            self.context.setdefault(key, value)
        return self

    def at(self, location: str) -> "JMXError":
        """Prefix ``location`` to the error's location path and return self."""
        inner = self.context.get("location")
        if inner:
            sep = "" if inner.startswith("[") else "."
            location = f"{location}{sep}{inner}"
        self.context["location"] = location
        return self

    def __str__(self) -> str:
        location = self.context.get("location")
        if location:
            return f"{location}: {self.message}"
        return self.message


# =============================================================================
# Name errors
# =============================================================================


class ObjectNameError(JMXError):
    """Object name violates the naming rules or uses a reserved name."""

    error_code = "NAME_ILLEGAL"
    stage = "names"

    def __init__(self, kind: str, name: Any, reason: str = "violates object naming rules"):
        super().__init__(
            f"Invalid {kind} name {name!r}: {reason}",
            context={"kind": kind, "name": name},
            hint="Names are 1-49 characters from [A-Za-z0-9_=.,[]():;#@!$%*+<>?-]",
        )


class DuplicateNameError(JMXError):
    """An object with the same name already exists in the relevant scope."""

    error_code = "NAME_DUPLICATE"
    stage = "names"

    def __init__(self, kind: str, name: str, scope: str = "document"):
        super().__init__(
            f"Duplicate {kind} name {name!r} in {scope}",
            context={"kind": kind, "name": name, "scope": scope},
        )


# =============================================================================
# Parameter errors
# =============================================================================


class ParameterError(JMXError):
    """Parameter is unrecognized for its owner or its value fails the rule."""

    error_code = "PARAMETER_INVALID"
    stage = "params"

    def __init__(self, discriminator: str, parameter: str, value: Any, reason: str = "invalid value"):
        super().__init__(
            f"Bad parameter {parameter!r} for {discriminator}: {reason} (got {value!r})",
            context={"discriminator": discriminator, "parameter": parameter, "value": value},
        )
        self.discriminator = discriminator
        self.parameter = parameter
        self.value = value


# =============================================================================
# Reference and structure errors
# =============================================================================


class UnresolvedReferenceError(JMXError):
    """A trial or operation names an object that does not exist."""

    error_code = "REFERENCE_UNRESOLVED"
    stage = "resolver"

    def __init__(self, kind: str, reference: str):
        super().__init__(
            f"{kind} does not exist: {reference!r}",
            context={"kind": kind, "reference": reference},
        )
        self.kind = kind
        self.reference = reference


class StructureError(JMXError):
    """Structural rule violated (overlap, count mismatch, bad RV dependency)."""

    error_code = "STRUCTURE_INVALID"
    stage = "structure"


# =============================================================================
# Load and session errors
# =============================================================================


class DocumentLoadError(JMXError):
    """Persisted document could not be parsed, migrated or validated."""

    error_code = "LOAD_FAILED"
    stage = "load"


class VersionError(DocumentLoadError):
    """Stored document version is missing, malformed or unsupported."""

    error_code = "VERSION_INVALID"

    def __init__(self, version: Any, current: int):
        super().__init__(
            f"Invalid JMX version = {version!r} (supported: 1..{current})",
            context={"version": version, "current": current},
        )


class SessionError(JMXError):
    """Session handle misuse or failure to persist the open document."""

    error_code = "SESSION_ERROR"
    stage = "session"
