"""Document tree operations.

Every function takes a Document and returns a NEW Document with the change
applied; the input is never modified. Each operation builds the candidate
object, validates it against the current document, and only then assembles the
result, so a failed call leaves nothing behind.

Objects may be passed either as models or in their persisted shapes (the same
shapes jmxdoc.serialize reads from a file), e.g. a perturbation as
``["p1", "sinusoid", 1000, 250, 0]``.

Operations:
-----------
- set_settings: Replace the settings block wholesale
- upsert_channel_config, upsert_perturbation: Replace by name or append
- add_target_set, add_trial_set: Append-only containers (duplicate name fails)
- add_trial_subset: New empty subset; name shared with the set's trials
- upsert_target: Replace or append a target in an existing target set
- upsert_trial: Replace or append a trial in a trial set or one of its subsets

Example:
--------
>>> from jmxdoc.domain import Document
>>> from jmxdoc import editor
>>> doc = editor.add_target_set(Document(), "SetA")
>>> doc = editor.upsert_target(doc, "SetA", "spot1", "spot", ["dim", [4, 4, 1, 1]])
>>> [t.name for t in doc.find_target_set("SetA").targets]
['spot1']
"""

import logging
from typing import Any, Mapping, Optional, Sequence, Union

from jmxdoc.domain.channels import Channel, ChannelConfig
from jmxdoc.domain.document import Document
from jmxdoc.domain.exceptions import DuplicateNameError, JMXError, StructureError, UnresolvedReferenceError
from jmxdoc.domain.perturbations import Perturbation
from jmxdoc.domain.settings import AppSettings
from jmxdoc.domain.targets import TargetSet
from jmxdoc.domain.trials import Trial, TrialSet, TrialSubset
from jmxdoc.names import check_name, check_target_set_name
from jmxdoc.serialize import channel_from_wire, perturbation_from_wire, settings_from_wire, target_from_wire, trial_from_wire
from jmxdoc.tree import find_index, replace_at, upsert_by_name
from jmxdoc.validation import (
    validate_channel_config,
    validate_perturbation,
    validate_settings,
    validate_target,
    validate_trial,
)

logger = logging.getLogger(__name__)


def _verb(replaced: bool) -> str:
    return "Replaced" if replaced else "Added"


def set_settings(doc: Document, settings: Union[AppSettings, Mapping[str, Any]]) -> Document:
    """Replace the settings block; all three vectors are checked before commit."""
    if not isinstance(settings, AppSettings):
        settings = settings_from_wire(settings)
    settings = validate_settings(settings)
    logger.debug("Replaced application settings")
    return doc.model_copy(update={"settings": settings})


def upsert_channel_config(doc: Document, name: str, channels: Sequence[Union[Channel, Sequence[Any]]]) -> Document:
    """Add channel configuration ``name`` or replace the one with that name.

    Args:
        doc: Current document
        name: Configuration name
        channels: Channel models or ``[id rec dsp offset gain color]`` lists
    """
    if not isinstance(channels, (list, tuple)):
        raise StructureError(f"channels must be a list, got {type(channels).__name__}", context={"field": "channels"})
    parsed = []
    for i, channel in enumerate(channels):
        try:
            parsed.append(channel if isinstance(channel, Channel) else channel_from_wire(channel))
        except JMXError as exc:
            raise exc.at(f"channels[{i}]")
    cfg = validate_channel_config(ChannelConfig(name=check_name(name, "channel configuration"), channels=tuple(parsed)))

    result = upsert_by_name(doc.chancfgs, cfg)
    logger.debug(f"{_verb(result.replaced)} channel configuration '{name}' at index {result.index}")
    return doc.model_copy(update={"chancfgs": result.items})


def upsert_perturbation(doc: Document, pert: Union[Perturbation, Sequence[Any]]) -> Document:
    """Add a perturbation or replace the one with the same name."""
    if not isinstance(pert, Perturbation):
        pert = perturbation_from_wire(pert)
    pert = validate_perturbation(pert)

    result = upsert_by_name(doc.perts, pert)
    logger.debug(f"{_verb(result.replaced)} perturbation '{pert.name}' at index {result.index}")
    return doc.model_copy(update={"perts": result.items})


def add_target_set(doc: Document, name: str) -> Document:
    """Append an empty target set.

    Raises:
        ObjectNameError: Illegal or reserved name
        DuplicateNameError: A target set with this name exists
    """
    check_target_set_name(name)
    if doc.find_target_set(name) is not None:
        raise DuplicateNameError("target set", name)
    logger.debug(f"Added target set '{name}'")
    return doc.model_copy(update={"target_sets": doc.target_sets + (TargetSet(name=name),)})


def add_trial_set(doc: Document, name: str) -> Document:
    """Append an empty trial set; fails on an existing name."""
    check_name(name, "trial set")
    if doc.find_trial_set(name) is not None:
        raise DuplicateNameError("trial set", name)
    logger.debug(f"Added trial set '{name}'")
    return doc.model_copy(update={"trial_sets": doc.trial_sets + (TrialSet(name=name),)})


def _trial_set_index(doc: Document, set_name: str) -> int:
    index = find_index(doc.trial_sets, set_name)
    if index is None:
        raise UnresolvedReferenceError("trial set", set_name)
    return index


def add_trial_subset(doc: Document, set_name: str, name: str) -> Document:
    """Append an empty subset to trial set ``set_name``.

    Raises:
        UnresolvedReferenceError: Trial set does not exist
        DuplicateNameError: A trial or subset in the set already uses ``name``
    """
    check_name(name, "trial subset")
    index = _trial_set_index(doc, set_name)
    trial_set = doc.trial_sets[index]
    if trial_set.find(name) is not None:
        raise DuplicateNameError("trial subset", name, scope=f"trial set {set_name!r}")

    updated = trial_set.model_copy(update={"children": trial_set.children + (TrialSubset(name=name),)})
    logger.debug(f"Added trial subset '{name}' to trial set '{set_name}'")
    return doc.model_copy(update={"trial_sets": replace_at(doc.trial_sets, index, updated)})


def upsert_target(doc: Document, set_name: str, name: str, target_type: str, params: Any = ()) -> Document:
    """Add or replace target ``name`` in target set ``set_name``.

    Args:
        doc: Current document
        set_name: Existing target set
        name: Target name
        target_type: One of the target types
        params: Explicit parameters, as a mapping or ``[name, value, ...]`` list
    """
    index = find_index(doc.target_sets, set_name)
    if index is None:
        raise UnresolvedReferenceError("target set", set_name)

    check_name(name, "target")
    target = validate_target(target_from_wire({"name": name, "type": target_type, "params": params}))

    target_set = doc.target_sets[index]
    result = upsert_by_name(target_set.targets, target)
    updated = target_set.model_copy(update={"targets": result.items})
    logger.debug(f"{_verb(result.replaced)} target '{set_name}/{name}' ({target_type})")
    return doc.model_copy(update={"target_sets": replace_at(doc.target_sets, index, updated)})


def upsert_trial(doc: Document, set_name: str, trial: Union[Trial, Mapping[str, Any]], subset: Optional[str] = None) -> Document:
    """Add or replace a trial in trial set ``set_name`` or in its ``subset``.

    The trial is fully validated, including its references, against ``doc``.

    Raises:
        UnresolvedReferenceError: Trial set or subset does not exist, or a trial reference fails
        DuplicateNameError: Inserting directly into the set under a subset's name
    """
    if not isinstance(trial, Trial):
        trial = trial_from_wire(trial)

    index = _trial_set_index(doc, set_name)
    trial_set = doc.trial_sets[index]

    if subset is None:
        existing = trial_set.find(trial.name)
        if isinstance(existing, TrialSubset):
            raise DuplicateNameError("trial", trial.name, scope=f"trial set {set_name!r} (name used by a subset)")
        trial = validate_trial(trial, doc)
        result = upsert_by_name(trial_set.children, trial)
        updated = trial_set.model_copy(update={"children": result.items})
        where = set_name
    else:
        sub_index = find_index(trial_set.children, subset)
        if sub_index is None or not isinstance(trial_set.children[sub_index], TrialSubset):
            raise UnresolvedReferenceError("trial subset", f"{set_name}/{subset}")
        trial = validate_trial(trial, doc)
        parent = trial_set.children[sub_index]
        result = upsert_by_name(parent.trials, trial)
        parent = parent.model_copy(update={"trials": result.items})
        updated = trial_set.model_copy(update={"children": replace_at(trial_set.children, sub_index, parent)})
        where = f"{set_name}/{subset}"

    logger.debug(f"{_verb(result.replaced)} trial '{trial.name}' in '{where}' at index {result.index}")
    return doc.model_copy(update={"trial_sets": replace_at(doc.trial_sets, index, updated)})
