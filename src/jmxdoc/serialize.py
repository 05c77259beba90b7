"""Conversion between Document models and the persisted JSON form.

Persisted Layout:
-----------------
{
  "version": 4,
  "settings": {"rmv": [...6 ints], "fix": [...2 floats], "other": [...8 ints]},
  "chancfgs": [{"name": ..., "channels": [[id, rec, dsp, offset, gain, color], ...]}],
  "perts": [[name, kind, dur, p1, p2, (p3)], ...],
  "targetSets": [{"name": ..., "targets": [{"name": ..., "type": ..., "params": [n, v, ...]}]}],
  "trialSets": [{"name": ..., "trials": [<trial> | {"subset": ..., "trials": [<trial>, ...]}]}]
}

A trial object has the keys ``name, params, perts, tgts, tags``, then ``rvs`` and
``rvuse`` only when the trial carries them, then ``segs``. Keyed parameter
lists are flattened to ``[name, value, name, value, ...]``.

Loading:
--------
document_from_dict runs version check -> migration -> parsing -> full
validation. Any failure raises DocumentLoadError (chained to the underlying
error) and no document is produced.

The per-object ``*_from_wire`` parsers are shared with the editor, so objects
passed in their persisted shapes go through the same code as a loaded file.
"""

import json
import logging
from typing import Any, Dict, List, Mapping, Sequence, Union

from pydantic import BaseModel, ValidationError

from jmxdoc.domain.channels import Channel, ChannelConfig
from jmxdoc.domain.document import Document
from jmxdoc.domain.exceptions import DocumentLoadError, JMXError, ParameterError, StructureError
from jmxdoc.domain.perturbations import Perturbation
from jmxdoc.domain.settings import AppSettings
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
from jmxdoc.migrate import CURRENT_VERSION, check_version, migrate
from jmxdoc.params import SEGMENT, TRAJECTORY, TRIAL, params_from_pairs, params_to_pairs
from jmxdoc.validation import validate_document

logger = logging.getLogger(__name__)

TRIAL_KEYS = ("name", "params", "perts", "tgts", "tags", "segs")
OPTIONAL_TRIAL_KEYS = ("rvs", "rvuse")


# =============================================================================
# Wire helpers
# =============================================================================


def _build(model: type, what: str, /, **fields: Any) -> BaseModel:
    """Construct ``model`` from ``fields``, converting pydantic errors to ParameterError.

    ``what`` names the object in the error; model fields such as ``kind`` pass through ``fields``.
    """
    try:
        return model(**fields)
    except ValidationError as exc:
        first = exc.errors()[0]
        field = ".".join(str(p) for p in first["loc"]) or what
        raise ParameterError(what, field, first.get("input"), reason=first["msg"]) from exc


def _as_list(value: Any, what: str) -> List[Any]:
    if not isinstance(value, (list, tuple)):
        raise StructureError(f"{what} must be a list, got {type(value).__name__}", context={"field": what})
    return list(value)


def _as_dict(value: Any, what: str) -> Dict[str, Any]:
    if not isinstance(value, Mapping):
        raise StructureError(f"{what} must be an object, got {type(value).__name__}", context={"field": what})
    return dict(value)


def _field(obj: Mapping[str, Any], key: str, what: str) -> Any:
    if key not in obj:
        raise StructureError(f"{what} is missing field {key!r}", context={"field": key})
    return obj[key]


def _check_keys(obj: Mapping[str, Any], allowed: Sequence[str], what: str) -> None:
    unknown = [k for k in obj if k not in allowed]
    if unknown:
        raise StructureError(f"{what} has unknown field(s): {', '.join(map(str, unknown))}", context={"fields": unknown})


# =============================================================================
# Parsers (wire -> model)
# =============================================================================


def settings_from_wire(raw: Any) -> AppSettings:
    obj = _as_dict(raw, "settings")
    _check_keys(obj, ("rmv", "fix", "other"), "settings")
    fields = {k: _as_list(obj[k], f"settings.{k}") for k in ("rmv", "fix", "other") if k in obj}
    return _build(AppSettings, "settings", **fields)


def channel_from_wire(raw: Any) -> Channel:
    """Parse ``[id rec dsp offset gain color]``."""
    values = _as_list(raw, "channel")
    if len(values) != 6:
        raise ParameterError("channel", "channel", values, reason="expected 6 elements [id rec dsp offset gain color]")
    ch_id, record, display, offset, gain, color = values
    return _build(Channel, "channel", id=ch_id, record=record, display=display, offset=offset, gain=gain, color=color)


def channel_config_from_wire(raw: Any) -> ChannelConfig:
    obj = _as_dict(raw, "channel configuration")
    _check_keys(obj, ("name", "channels"), "channel configuration")
    channels = []
    for i, entry in enumerate(_as_list(_field(obj, "channels", "channel configuration"), "channels")):
        try:
            channels.append(channel_from_wire(entry))
        except JMXError as exc:
            raise exc.at(f"channels[{i}]")
    return _build(ChannelConfig, "channel configuration", name=_field(obj, "name", "channel configuration"), channels=tuple(channels))


def perturbation_from_wire(raw: Any) -> Perturbation:
    """Parse ``[name kind dur p1 p2 (p3)]``; a sinusoid's p3 is ignored."""
    values = _as_list(raw, "perturbation")
    if not 5 <= len(values) <= 6:
        raise ParameterError("perturbation", "perturbation", values, reason=f"invalid array length = {len(values)}")
    name, kind, duration = values[:3]
    if isinstance(duration, float) and duration.is_integer():
        duration = int(duration)
    params = values[3:]
    if kind == "sinusoid":
        params = params[:2]
    elif len(params) < 3:
        raise ParameterError(str(kind), "params", params, reason="expected 3 defining parameters")
    return _build(Perturbation, "perturbation", name=name, kind=kind, duration=duration, params=tuple(params))


def target_from_wire(raw: Any) -> Target:
    obj = _as_dict(raw, "target")
    _check_keys(obj, ("name", "type", "params"), "target")
    target_type = _field(obj, "type", "target")
    params = params_from_pairs(obj.get("params", []), str(target_type))
    return _build(Target, "target", name=_field(obj, "name", "target"), type=target_type, params=params)


def target_set_from_wire(raw: Any) -> TargetSet:
    obj = _as_dict(raw, "target set")
    _check_keys(obj, ("name", "targets"), "target set")
    targets = []
    for i, entry in enumerate(_as_list(_field(obj, "targets", "target set"), "targets")):
        try:
            targets.append(target_from_wire(entry))
        except JMXError as exc:
            raise exc.at(f"targets[{i}]")
    return _build(TargetSet, "target set", name=_field(obj, "name", "target set"), targets=tuple(targets))


def _usage_from_wire(raw: Any) -> PerturbationUsage:
    values = _as_list(raw, "perturbation usage")
    if len(values) != 5:
        raise ParameterError("perturbation usage", "perts", values, reason="expected 5 elements [name A S T C]")
    name, amplitude, segment, target, component = values
    return _build(
        PerturbationUsage, "perturbation usage", name=name, amplitude=amplitude, segment=segment, target=target, component=component
    )


def _tag_from_wire(raw: Any) -> TaggedSection:
    values = _as_list(raw, "tagged section")
    if len(values) != 3:
        raise ParameterError("tag", "tags", values, reason="expected 3 elements [label start end]")
    label, start, end = values
    return _build(TaggedSection, "tag", label=label, start=start, end=end)


def _rv_from_wire(raw: Any) -> RandomVariable:
    values = _as_list(raw, "random variable")
    if not values:
        raise ParameterError("RV", "rvs", values, reason="empty random variable definition")
    kind = values[0]
    if kind == "function":
        if len(values) != 2:
            raise ParameterError("function RV", "rvs", values, reason="expected ['function', formula]")
        return _build(RandomVariable, "function RV", kind=kind, formula=values[1])
    if len(values) < 2:
        raise ParameterError("RV", "rvs", values, reason="expected [kind, seed, ...]")
    return _build(RandomVariable, "RV", kind=kind, seed=values[1], params=tuple(values[2:]))


def _rvuse_from_wire(raw: Any) -> RVAssignment:
    values = _as_list(raw, "RV assignment")
    if len(values) != 4:
        raise ParameterError("rvuse", "rvuse", values, reason="expected 4 elements [rv param seg tgt]")
    rv, param, segment, target = values
    return _build(RVAssignment, "rvuse", rv=rv, param=param, segment=segment, target=target)


def _segment_from_wire(raw: Any) -> Segment:
    obj = _as_dict(raw, "segment")
    _check_keys(obj, ("hdr", "traj"), "segment")
    hdr = params_from_pairs(obj.get("hdr", []), SEGMENT)
    traj = []
    for k, entry in enumerate(_as_list(obj.get("traj", []), "traj")):
        try:
            traj.append(params_from_pairs(entry, TRAJECTORY))
        except JMXError as exc:
            raise exc.at(f"traj[{k}]")
    return Segment(hdr=hdr, traj=tuple(traj))


def _each_from_wire(parse, raw: Any, field: str) -> tuple:
    items = []
    for i, entry in enumerate(_as_list(raw, field)):
        try:
            items.append(parse(entry))
        except JMXError as exc:
            raise exc.at(f"{field}[{i}]")
    return tuple(items)


def trial_from_wire(raw: Any) -> Trial:
    """Parse a persisted trial object (no ``subset`` key)."""
    obj = _as_dict(raw, "trial")
    _check_keys(obj, TRIAL_KEYS + OPTIONAL_TRIAL_KEYS, "trial")
    name = _field(obj, "name", "trial")
    try:
        fields: Dict[str, Any] = {
            "name": name,
            "params": params_from_pairs(obj.get("params", []), TRIAL),
            "perts": _each_from_wire(_usage_from_wire, obj.get("perts", []), "perts"),
            "tgts": tuple(_as_list(_field(obj, "tgts", "trial"), "tgts")),
            "tags": _each_from_wire(_tag_from_wire, obj.get("tags", []), "tags"),
            "segs": _each_from_wire(_segment_from_wire, _field(obj, "segs", "trial"), "segs"),
        }
        if "rvs" in obj:
            fields["rvs"] = _each_from_wire(_rv_from_wire, obj["rvs"], "rvs")
        if "rvuse" in obj:
            fields["rvuse"] = _each_from_wire(_rvuse_from_wire, obj["rvuse"], "rvuse")
        return _build(Trial, "trial", **fields)
    except JMXError as exc:
        raise exc.with_context(trial=name)


def trial_subset_from_wire(raw: Any) -> TrialSubset:
    obj = _as_dict(raw, "trial subset")
    _check_keys(obj, ("subset", "trials"), "trial subset")
    trials = []
    for i, entry in enumerate(_as_list(_field(obj, "trials", "trial subset"), "trials")):
        if isinstance(entry, Mapping) and "subset" in entry:
            raise StructureError("Trial subsets cannot contain subsets", context={"subset": entry.get("subset")}).at(f"trials[{i}]")
        try:
            trials.append(trial_from_wire(entry))
        except JMXError as exc:
            raise exc.at(f"trials[{i}]")
    return _build(TrialSubset, "trial subset", name=_field(obj, "subset", "trial subset"), trials=tuple(trials))


def trial_set_from_wire(raw: Any) -> TrialSet:
    obj = _as_dict(raw, "trial set")
    _check_keys(obj, ("name", "trials"), "trial set")
    children: List[Union[Trial, TrialSubset]] = []
    for i, entry in enumerate(_as_list(_field(obj, "trials", "trial set"), "trials")):
        try:
            if isinstance(entry, Mapping) and "subset" in entry:
                children.append(trial_subset_from_wire(entry))
            else:
                children.append(trial_from_wire(entry))
        except JMXError as exc:
            raise exc.at(f"trials[{i}]")
    return _build(TrialSet, "trial set", name=_field(obj, "name", "trial set"), children=tuple(children))


def _parse_document(raw: Dict[str, Any]) -> Document:
    _check_keys(raw, ("version", "settings", "chancfgs", "perts", "targetSets", "trialSets"), "document")
    try:
        settings = settings_from_wire(_field(raw, "settings", "document"))
    except JMXError as exc:
        raise exc.at("settings")
    return Document(
        settings=settings,
        chancfgs=_each_from_wire(channel_config_from_wire, _field(raw, "chancfgs", "document"), "chancfgs"),
        perts=_each_from_wire(perturbation_from_wire, _field(raw, "perts", "document"), "perts"),
        target_sets=_each_from_wire(target_set_from_wire, _field(raw, "targetSets", "document"), "targetSets"),
        trial_sets=_each_from_wire(trial_set_from_wire, _field(raw, "trialSets", "document"), "trialSets"),
    )


def document_from_dict(raw: Any) -> Document:
    """Load a persisted document of any supported version.

    Raises:
        VersionError: Missing or unsupported version
        DocumentLoadError: Any parse or validation failure
    """
    version = check_version(raw)
    try:
        doc = validate_document(_parse_document(migrate(raw)))
    except JMXError as exc:
        raise DocumentLoadError(
            f"Unable to parse JMX document: {exc.message}",
            context={**exc.context, "error_code": exc.error_code},
            hint=exc.hint,
        ) from exc
    logger.debug(f"Parsed JMX document (stored version {version})")
    return doc


# =============================================================================
# Emitters (model -> wire)
# =============================================================================


def settings_to_wire(settings: AppSettings) -> Dict[str, Any]:
    return {"rmv": list(settings.rmv), "fix": list(settings.fix), "other": list(settings.other)}


def channel_config_to_wire(cfg: ChannelConfig) -> Dict[str, Any]:
    return {
        "name": cfg.name,
        "channels": [[c.id, c.record, c.display, c.offset, c.gain, c.color] for c in cfg.channels],
    }


def perturbation_to_wire(pert: Perturbation) -> List[Any]:
    return [pert.name, pert.kind, pert.duration, *pert.params]


def target_to_wire(target: Target) -> Dict[str, Any]:
    return {"name": target.name, "type": target.type, "params": params_to_pairs(target.params)}


def target_set_to_wire(target_set: TargetSet) -> Dict[str, Any]:
    return {"name": target_set.name, "targets": [target_to_wire(t) for t in target_set.targets]}


def _rv_to_wire(rv: RandomVariable) -> List[Any]:
    if rv.kind == "function":
        return [rv.kind, rv.formula]
    return [rv.kind, rv.seed, *rv.params]


def trial_to_wire(trial: Trial) -> Dict[str, Any]:
    wire: Dict[str, Any] = {
        "name": trial.name,
        "params": params_to_pairs(trial.params),
        "perts": [[u.name, u.amplitude, u.segment, u.target, u.component] for u in trial.perts],
        "tgts": list(trial.tgts),
        "tags": [[t.label, t.start, t.end] for t in trial.tags],
    }
    if trial.rvs is not None:
        wire["rvs"] = [_rv_to_wire(rv) for rv in trial.rvs]
    if trial.rvuse is not None:
        wire["rvuse"] = [[a.rv, a.param, a.segment, a.target] for a in trial.rvuse]
    wire["segs"] = [{"hdr": params_to_pairs(s.hdr), "traj": [params_to_pairs(t) for t in s.traj]} for s in trial.segs]
    return wire


def trial_subset_to_wire(subset: TrialSubset) -> Dict[str, Any]:
    return {"subset": subset.name, "trials": [trial_to_wire(t) for t in subset.trials]}


def trial_set_to_wire(trial_set: TrialSet) -> Dict[str, Any]:
    trials = [trial_subset_to_wire(c) if isinstance(c, TrialSubset) else trial_to_wire(c) for c in trial_set.children]
    return {"name": trial_set.name, "trials": trials}


def document_to_dict(doc: Document) -> Dict[str, Any]:
    """Persisted form of ``doc`` at CURRENT_VERSION."""
    return {
        "version": CURRENT_VERSION,
        "settings": settings_to_wire(doc.settings),
        "chancfgs": [channel_config_to_wire(c) for c in doc.chancfgs],
        "perts": [perturbation_to_wire(p) for p in doc.perts],
        "targetSets": [target_set_to_wire(s) for s in doc.target_sets],
        "trialSets": [trial_set_to_wire(s) for s in doc.trial_sets],
    }


# =============================================================================
# JSON text
# =============================================================================


def dumps(doc: Document, indent: int = 2) -> str:
    return json.dumps(document_to_dict(doc), indent=indent)


def loads(text: str) -> Document:
    """Parse JSON text into a Document (see document_from_dict)."""
    try:
        raw = json.loads(text)
    except json.JSONDecodeError as exc:
        raise DocumentLoadError(f"Document is not valid JSON: {exc}", context={"line": exc.lineno, "column": exc.colno}) from exc
    return document_from_dict(raw)
