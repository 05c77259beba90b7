"""Domain models for jmxdoc.

This package provides the Pydantic models of the JMX experiment document and
the exception hierarchy shared by every layer. Models are organized by object
kind and re-exported here.

Package Structure:
-----------------
- exceptions: Exception hierarchy (JMXError and subclasses)
- settings: Application settings (AppSettings)
- channels: Channel configurations (ChannelConfig, Channel)
- perturbations: Perturbation waveforms (Perturbation)
- targets: Targets and target sets (Target, TargetSet)
- trials: Trials, subsets, segments and trial-level records
- document: Document root

Design Principles:
------------------
1. **Immutability**: All models use frozen=True; edits build new models
2. **Strict Validation**: All models use extra="forbid"
3. **Structure Only**: Models check shape and types; ranges and references are
   checked by jmxdoc.validation
4. **Composition**: Models compose other models (no inheritance)

Import Patterns:
---------------
# Direct module imports
from jmxdoc.domain.trials import Trial, Segment
from jmxdoc.domain.exceptions import JMXError, ParameterError

# Package root imports
from jmxdoc.domain import Document, Trial, JMXError

Example:
--------
>>> from jmxdoc.domain import Document, TargetSet
>>> doc = Document()
>>> doc = doc.model_copy(update={"target_sets": (TargetSet(name="SetA"),)})
>>> doc.find_target_set("SetA").name
'SetA'
"""

from jmxdoc.domain.channels import Channel, ChannelConfig
from jmxdoc.domain.document import Document
from jmxdoc.domain.exceptions import (
    DocumentLoadError,
    DuplicateNameError,
    JMXError,
    ObjectNameError,
    ParameterError,
    SessionError,
    StructureError,
    UnresolvedReferenceError,
    VersionError,
)
from jmxdoc.domain.perturbations import Perturbation
from jmxdoc.domain.settings import DEFAULT_FIX, DEFAULT_OTHER, DEFAULT_RMV, AppSettings
from jmxdoc.domain.targets import Target, TargetSet
from jmxdoc.domain.trials import (
    PerturbationUsage,
    RandomVariable,
    RVAssignment,
    Segment,
    TaggedSection,
    Trial,
    TrialSet,
    TrialSubset,
)

__all__ = [
    # Exceptions
    "JMXError",
    "ObjectNameError",
    "DuplicateNameError",
    "ParameterError",
    "UnresolvedReferenceError",
    "StructureError",
    "DocumentLoadError",
    "VersionError",
    "SessionError",
    # Settings
    "AppSettings",
    "DEFAULT_RMV",
    "DEFAULT_FIX",
    "DEFAULT_OTHER",
    # Channels
    "Channel",
    "ChannelConfig",
    # Perturbations
    "Perturbation",
    # Targets
    "Target",
    "TargetSet",
    # Trials
    "PerturbationUsage",
    "TaggedSection",
    "RandomVariable",
    "RVAssignment",
    "Segment",
    "Trial",
    "TrialSubset",
    "TrialSet",
    # Root
    "Document",
]
