"""Per-object and whole-document validation.

Each ``validate_*`` function checks one object against the naming rules, the
parameter registry, the cross-reference resolver, the tagged-section index and
the random-variable rules as they apply, and returns the object in normalized
form (channel aliases and aperture aliases rewritten, obsolete parameters
dropped). Objects are never modified in place; nothing is returned on failure.

Validation order for a trial:
1. name, non-empty target list and segment table
2. general parameters (bounds depend on segment and target counts)
3. perturbation usages
4. segment headers and one trajectory per target
5. references (channel config, perturbations, targets)
6. tagged sections
7. random variables and their assignments

Errors raised while validating a whole document carry a location path in the
persisted form's field names, e.g. ``trialSets[0].trials[2].segs[1]``.
"""

import logging
from typing import Optional, Union

from jmxdoc.domain.channels import Channel, ChannelConfig
from jmxdoc.domain.document import Document
from jmxdoc.domain.exceptions import DuplicateNameError, JMXError, ParameterError, StructureError
from jmxdoc.domain.perturbations import Perturbation
from jmxdoc.domain.settings import AppSettings
from jmxdoc.domain.targets import Target, TargetSet
from jmxdoc.domain.trials import PerturbationUsage, Segment, Trial, TrialSet, TrialSubset
from jmxdoc.names import check_name, check_target_set_name
from jmxdoc.params import SEGMENT, TRAJECTORY, TRIAL, RuleContext, validate_params
from jmxdoc.resolver import resolve_trial_references
from jmxdoc.rvs import validate_assignments, validate_random_variables
from jmxdoc.tags import validate_tagged_sections
from jmxdoc.tree import duplicate_names
from jmxdoc.vocabulary import (
    CHANNEL_ALIASES,
    CHANNEL_COLORS,
    CHANNEL_IDS,
    MAX_PERTURBATIONS,
    PERTURBATION_KINDS,
    TARGET_TYPES,
    TRAJECTORY_COMPONENTS,
)

logger = logging.getLogger(__name__)


# =============================================================================
# Settings
# =============================================================================


def validate_settings(settings: AppSettings) -> AppSettings:
    """Check lengths and ranges of every settings vector.

    Raises:
        ParameterError: Naming the offending vector
    """

    def fail(field: str, values, reason: str):
        raise ParameterError("settings", field, list(values), reason=reason)

    rmv = settings.rmv
    if len(rmv) != 6:
        fail("rmv", rmv, "expected 6 elements [w h d bkg spotsize flashdur]")
    if not all(50 <= x <= 50000 for x in rmv[:3]):
        fail("rmv", rmv, "display geometry must be in [50, 50000]")
    if not 0 <= rmv[4] <= 50:
        fail("rmv", rmv, "flash spot size must be in [0, 50]")
    if not 1 <= rmv[5] <= 9:
        fail("rmv", rmv, "flash duration must be in [1, 9]")

    fix = settings.fix
    if len(fix) != 2:
        fail("fix", fix, "expected 2 elements [h v]")
    if not all(0.1 <= x <= 50 for x in fix):
        fail("fix", fix, "fixation accuracy must be in [0.1, 50]")

    other = settings.other
    if len(other) != 8:
        fail("other", other, "expected 8 elements [fixdur rew1 rew2 ovride varatio audiorew beep vstabwin]")
    if not 100 <= other[0] <= 10000:
        fail("other", other, "fixation duration must be in [100, 10000]")
    if not all(1 <= x <= 999 for x in other[1:3]):
        fail("other", other, "reward pulse lengths must be in [1, 999]")
    if not 1 <= other[4] <= 10:
        fail("other", other, "variable ratio must be in [1, 10]")
    if other[5] != 0 and not 100 <= other[5] <= 1000:
        fail("other", other, "audio reward length must be 0 or in [100, 1000]")
    if not 1 <= other[7] <= 20:
        fail("other", other, "velocity stabilization window must be in [1, 20]")

    return settings


# =============================================================================
# Channel configurations and perturbations
# =============================================================================


def validate_channel(channel: Channel) -> Channel:
    """Validate one channel descriptor; return it with a canonical id."""
    channel_id = CHANNEL_ALIASES.get(channel.id, channel.id)
    if channel_id not in CHANNEL_IDS:
        raise ParameterError("channel", "id", channel.id, reason="unrecognized channel id")
    if not -90000 <= channel.offset <= 90000:
        raise ParameterError("channel", "offset", channel.offset, reason="must be in [-90000, 90000]")
    if not -5 <= channel.gain <= 5:
        raise ParameterError("channel", "gain", channel.gain, reason="must be in [-5, 5]")
    if channel.color not in CHANNEL_COLORS:
        raise ParameterError("channel", "color", channel.color, reason="unrecognized trace color")
    if channel_id != channel.id:
        return channel.model_copy(update={"id": channel_id})
    return channel


def validate_channel_config(cfg: ChannelConfig) -> ChannelConfig:
    check_name(cfg.name, "channel configuration")
    channels = []
    for i, channel in enumerate(cfg.channels):
        try:
            channels.append(validate_channel(channel))
        except JMXError as exc:
            raise exc.at(f"channels[{i}]")
    dups = duplicate_names([c.id for c in channels])
    if dups:
        raise DuplicateNameError("channel", dups[0], scope=f"channel configuration {cfg.name!r}")
    return cfg.model_copy(update={"channels": tuple(channels)})


def _require_int(discriminator: str, field: str, value) -> int:
    """Return ``value`` as an int; floats with an integral value (``250.0``) are accepted."""
    if isinstance(value, float) and value.is_integer():
        return int(value)
    if isinstance(value, bool) or not isinstance(value, int):
        raise ParameterError(discriminator, field, value, reason="must be an integer")
    return value


def validate_perturbation(pert: Perturbation) -> Perturbation:
    """Validate a perturbation waveform definition.

    Raises:
        ObjectNameError: Illegal name
        ParameterError: Unknown kind, wrong parameter count, or out-of-range value
    """
    check_name(pert.name, "perturbation")
    kind = pert.kind
    if kind not in PERTURBATION_KINDS:
        raise ParameterError("perturbation", "kind", kind, reason=f"must be one of {', '.join(PERTURBATION_KINDS)}")
    if pert.duration < 10:
        raise ParameterError(kind, "duration", pert.duration, reason="must be >= 10")

    expected = 2 if kind == "sinusoid" else 3
    if len(pert.params) != expected:
        raise ParameterError(kind, "params", list(pert.params), reason=f"expected {expected} defining parameters")

    p = pert.params
    if kind == "sinusoid":
        period = _require_int(kind, "period", p[0])
        phase = _require_int(kind, "phase", p[1])
        if period < 10:
            raise ParameterError(kind, "period", period, reason="must be >= 10")
        if not -180 <= phase <= 180:
            raise ParameterError(kind, "phase", phase, reason="must be in [-180, 180]")
        params = (period, phase)
    elif kind == "pulse train":
        ramp = _require_int(kind, "ramp", p[0])
        pulse = _require_int(kind, "pulse", p[1])
        interval = _require_int(kind, "interval", p[2])
        if ramp < 0:
            raise ParameterError(kind, "ramp", ramp, reason="must be >= 0")
        if pulse < 10:
            raise ParameterError(kind, "pulse", pulse, reason="must be >= 10")
        if interval < pulse + 2 * ramp:
            raise ParameterError(kind, "interval", interval, reason="must be >= pulse + 2*ramp")
        params = (ramp, pulse, interval)
    else:
        interval = _require_int(kind, "interval", p[0])
        seed = _require_int(kind, "seed", p[2])
        if interval < 1:
            raise ParameterError(kind, "interval", interval, reason="must be >= 1")
        if not -1 <= p[1] <= 1:
            raise ParameterError(kind, "mean", p[1], reason="must be in [-1, 1]")
        if not -9999999 <= seed <= 10000000:
            raise ParameterError(kind, "seed", seed, reason="must be in [-9999999, 10000000]")
        params = (interval, p[1], seed)
    return pert.model_copy(update={"params": params})


# =============================================================================
# Targets
# =============================================================================


def validate_target(target: Target) -> Target:
    """Validate name, type and parameters; return the target with normalized params."""
    check_name(target.name, "target")
    if target.type not in TARGET_TYPES:
        raise ParameterError("target", "type", target.type, reason=f"must be one of {', '.join(TARGET_TYPES)}")
    params = validate_params(target.type, target.params, RuleContext(target.type))
    return target.model_copy(update={"params": params})


def validate_target_set(target_set: TargetSet) -> TargetSet:
    check_target_set_name(target_set.name)
    dups = duplicate_names([t.name for t in target_set.targets])
    if dups:
        raise DuplicateNameError("target", dups[0], scope=f"target set {target_set.name!r}")
    targets = []
    for i, target in enumerate(target_set.targets):
        try:
            targets.append(validate_target(target))
        except JMXError as exc:
            raise exc.at(f"targets[{i}]").with_context(target=target.name)
    return target_set.model_copy(update={"targets": tuple(targets)})


# =============================================================================
# Trials
# =============================================================================


def _validate_usage(usage: PerturbationUsage, n_segs: int, n_tgts: int) -> None:
    if not -999.99 <= usage.amplitude <= 999.99:
        raise ParameterError("perturbation usage", "amplitude", usage.amplitude, reason="must be in [-999.99, 999.99]")
    if not 1 <= usage.segment <= n_segs:
        raise ParameterError("perturbation usage", "segment", usage.segment, reason=f"must be in [1, {n_segs}]")
    if not 1 <= usage.target <= n_tgts:
        raise ParameterError("perturbation usage", "target", usage.target, reason=f"must be in [1, {n_tgts}]")
    if usage.component not in TRAJECTORY_COMPONENTS:
        raise ParameterError("perturbation usage", "component", usage.component, reason="unknown trajectory component")


def _validate_segment(segment: Segment, ctx: RuleContext) -> Segment:
    hdr = validate_params(SEGMENT, segment.hdr, RuleContext(SEGMENT, ctx.n_segs, ctx.n_tgts))
    if len(segment.traj) != ctx.n_tgts:
        raise StructureError(
            f"Segment has {len(segment.traj)} trajectories for {ctx.n_tgts} targets",
            context={"expected": ctx.n_tgts, "found": len(segment.traj)},
        )
    traj = []
    for k, params in enumerate(segment.traj):
        try:
            traj.append(validate_params(TRAJECTORY, params, RuleContext(TRAJECTORY, ctx.n_segs, ctx.n_tgts)))
        except JMXError as exc:
            raise exc.at(f"traj[{k}]")
    return Segment(hdr=hdr, traj=tuple(traj))


def validate_trial(trial: Trial, doc: Document) -> Trial:
    """Validate ``trial`` against the objects of ``doc``; return it normalized.

    Raises:
        JMXError: Any subclass; ``context["trial"]`` holds the trial name
    """
    try:
        return _validate_trial(trial, doc)
    except JMXError as exc:
        raise exc.with_context(trial=trial.name)


def _validate_trial(trial: Trial, doc: Document) -> Trial:
    check_name(trial.name, "trial")
    n_tgts, n_segs = trial.n_tgts, trial.n_segs
    if n_tgts == 0:
        raise StructureError("Trial target list is empty", context={"field": "tgts"})
    if n_segs == 0:
        raise StructureError("Trial has no segments", context={"field": "segs"})

    ctx = RuleContext(TRIAL, n_segs=n_segs, n_tgts=n_tgts)
    try:
        params = validate_params(TRIAL, trial.params, ctx)
    except JMXError as exc:
        raise exc.at("params")

    if len(trial.perts) > MAX_PERTURBATIONS:
        raise StructureError(f"Too many perturbations in trial ({len(trial.perts)} > {MAX_PERTURBATIONS})", context={"field": "perts"})
    for i, usage in enumerate(trial.perts):
        try:
            _validate_usage(usage, n_segs, n_tgts)
        except JMXError as exc:
            raise exc.at(f"perts[{i}]")

    segs = []
    for i, segment in enumerate(trial.segs):
        try:
            segs.append(_validate_segment(segment, ctx))
        except JMXError as exc:
            raise exc.at(f"segs[{i}]")

    candidate = trial.model_copy(update={"params": params, "segs": tuple(segs)})
    resolve_trial_references(doc, candidate)

    try:
        validate_tagged_sections(candidate.tags, n_segs)
    except JMXError as exc:
        raise exc.at("tags")

    n_rvs = validate_random_variables(candidate.rvs)
    validate_assignments(candidate.rvuse, n_rvs, n_segs, n_tgts)
    return candidate


def validate_trial_subset(subset: TrialSubset, doc: Document) -> TrialSubset:
    check_name(subset.name, "trial subset")
    dups = duplicate_names([t.name for t in subset.trials])
    if dups:
        raise DuplicateNameError("trial", dups[0], scope=f"trial subset {subset.name!r}")
    trials = []
    for i, trial in enumerate(subset.trials):
        try:
            trials.append(validate_trial(trial, doc))
        except JMXError as exc:
            raise exc.at(f"trials[{i}]")
    return subset.model_copy(update={"trials": tuple(trials)})


def validate_trial_set(trial_set: TrialSet, doc: Document) -> TrialSet:
    """Validate a trial set; trials and subsets share one namespace."""
    check_name(trial_set.name, "trial set")
    dups = duplicate_names([c.name for c in trial_set.children])
    if dups:
        raise DuplicateNameError("trial or subset", dups[0], scope=f"trial set {trial_set.name!r}")
    children = []
    for i, child in enumerate(trial_set.children):
        try:
            children.append(_validate_child(child, doc))
        except JMXError as exc:
            raise exc.at(f"trials[{i}]")
    return trial_set.model_copy(update={"children": tuple(children)})


def _validate_child(child: Union[Trial, TrialSubset], doc: Document) -> Union[Trial, TrialSubset]:
    if isinstance(child, TrialSubset):
        return validate_trial_subset(child, doc)
    return validate_trial(child, doc)


# =============================================================================
# Whole document
# =============================================================================


def _check_unique(kind: str, names, field: str) -> None:
    dups = duplicate_names(list(names))
    if dups:
        raise DuplicateNameError(kind, dups[0]).at(field)


def validate_document(doc: Document, label: Optional[str] = None) -> Document:
    """Validate every object of ``doc``; return the normalized document.

    Trials are resolved against the normalized channel configs, perturbations
    and target sets validated before them.
    """
    try:
        settings = validate_settings(doc.settings)
    except JMXError as exc:
        raise exc.at("settings")

    _check_unique("channel configuration", (c.name for c in doc.chancfgs), "chancfgs")
    chancfgs = tuple(_each(validate_channel_config, doc.chancfgs, "chancfgs"))

    _check_unique("perturbation", (p.name for p in doc.perts), "perts")
    perts = tuple(_each(validate_perturbation, doc.perts, "perts"))

    _check_unique("target set", (s.name for s in doc.target_sets), "targetSets")
    target_sets = tuple(_each(validate_target_set, doc.target_sets, "targetSets"))

    resolved = Document(settings=settings, chancfgs=chancfgs, perts=perts, target_sets=target_sets)

    _check_unique("trial set", (s.name for s in doc.trial_sets), "trialSets")
    trial_sets = tuple(_each(lambda s: validate_trial_set(s, resolved), doc.trial_sets, "trialSets"))

    n_trials = sum(1 for s in trial_sets for _ in s.iter_trials())
    logger.debug(f"Validated document{' ' + label if label else ''}: {len(target_sets)} target sets, {n_trials} trials")
    return resolved.model_copy(update={"trial_sets": trial_sets})


def _each(func, items, field: str):
    for i, item in enumerate(items):
        try:
            yield func(item)
        except JMXError as exc:
            raise exc.at(f"{field}[{i}]")
