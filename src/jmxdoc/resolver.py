"""Cross-reference resolution for trials.

A trial refers to other document objects by name:

- ``params["chancfg"]``: a channel configuration, or the always-present "default"
- each perturbation usage: a perturbation waveform
- each target list entry: "CHAIR", or exactly one "/" separating an existing
  target set name from the name of a target in that set

Resolution runs against the document the trial is being inserted into, and
again for every trial whenever a whole document is loaded. Nothing is cached.
"""

import logging
from typing import Optional, Tuple

from jmxdoc.domain.document import Document
from jmxdoc.domain.exceptions import StructureError, UnresolvedReferenceError
from jmxdoc.domain.targets import Target
from jmxdoc.domain.trials import Trial
from jmxdoc.tree import duplicate_names
from jmxdoc.vocabulary import CHAIR_TARGET, DEFAULT_CHANNEL_CONFIG

logger = logging.getLogger(__name__)


def split_target_ref(ref: str) -> Optional[Tuple[str, str]]:
    """Split ``"set/name"`` into its parts; None if not exactly one interior "/"."""
    if ref.count("/") != 1:
        return None
    set_name, target_name = ref.split("/")
    if not set_name:
        return None
    return set_name, target_name


def resolve_channel_config(doc: Document, name: str) -> None:
    if name == DEFAULT_CHANNEL_CONFIG:
        return
    if doc.find_channel_config(name) is None:
        raise UnresolvedReferenceError("channel configuration", name)


def resolve_perturbation(doc: Document, name: str) -> None:
    if doc.find_perturbation(name) is None:
        raise UnresolvedReferenceError("perturbation", name)


def resolve_target_ref(doc: Document, ref: str) -> Optional[Target]:
    """Return the target named by ``ref``; None for the chair.

    Raises:
        UnresolvedReferenceError: If the entry is malformed, or the set or target is missing
    """
    if ref == CHAIR_TARGET:
        return None

    parts = split_target_ref(ref)
    if parts is None:
        raise UnresolvedReferenceError("target", ref)
    set_name, target_name = parts

    target_set = doc.find_target_set(set_name)
    if target_set is None:
        raise UnresolvedReferenceError("target set", set_name).with_context(target=ref)
    target = target_set.find(target_name)
    if target is None:
        raise UnresolvedReferenceError("target", ref)
    return target


def resolve_trial_references(doc: Document, trial: Trial) -> None:
    """Check every name ``trial`` refers to exists in ``doc``.

    Raises:
        UnresolvedReferenceError: First reference that does not resolve
        StructureError: Target list names the same target twice
    """
    resolve_channel_config(doc, trial.params.get("chancfg", DEFAULT_CHANNEL_CONFIG))

    for usage in trial.perts:
        resolve_perturbation(doc, usage.name)

    dups = duplicate_names(trial.tgts)
    if dups:
        raise StructureError(f"Duplicate entry in trial target list: {dups[0]!r}", context={"field": "tgts"})
    for ref in trial.tgts:
        resolve_target_ref(doc, ref)

    logger.debug(f"Resolved references of trial '{trial.name}'")
