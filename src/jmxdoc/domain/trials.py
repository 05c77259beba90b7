"""Trial, trial subset and trial set models.

A trial is a non-empty sequence of segments, each holding a header parameter
set and one trajectory parameter set per participating target. Every index
stored in these models (segment, target, RV) is 1-based, matching the
persisted form.

Model Hierarchy:
---------------
- TrialSet
  ├── Trial
  └── TrialSubset
      └── Trial

Trials and subsets share one namespace within their parent set. Subsets never
contain further subsets.

Persisted Shapes:
-----------------
- PerturbationUsage: [name A S T C]
- TaggedSection: [label start end]
- RandomVariable: [kind seed p1 p2 (p3)] or ["function" formula]
- RVAssignment: [rv param seg tgt]
- Segment: {"hdr": [name, value, ...], "traj": [[name, value, ...], ...]}
"""

from typing import Any, Dict, Optional, Tuple, Union

from pydantic import BaseModel, Field, StrictFloat, StrictInt, StrictStr

Number = Union[StrictInt, StrictFloat]


class PerturbationUsage(BaseModel):
    """Perturbation applied to one trajectory component of a trial target."""

    model_config = {"frozen": True, "extra": "forbid"}

    name: StrictStr
    amplitude: Number
    segment: StrictInt
    target: StrictInt
    component: StrictStr


class TaggedSection(BaseModel):
    """Labeled span of consecutive segments, inclusive on both ends."""

    model_config = {"frozen": True, "extra": "forbid"}

    label: StrictStr
    start: StrictInt
    end: StrictInt


class RandomVariable(BaseModel):
    """Random variable slot definition.

    Distribution kinds carry a seed and their shape parameters; the function
    kind carries only a formula over other slots (x0..x9).
    """

    model_config = {"frozen": True, "extra": "forbid"}

    kind: StrictStr
    seed: Optional[StrictInt] = None
    params: Tuple[Number, ...] = ()
    formula: Optional[StrictStr] = None


class RVAssignment(BaseModel):
    """Binds random variable ``rv`` to a segment or trajectory parameter."""

    model_config = {"frozen": True, "extra": "forbid"}

    rv: StrictInt
    param: StrictStr
    segment: StrictInt
    target: StrictInt


class Segment(BaseModel):
    """One trial segment: header parameters plus one trajectory per target."""

    model_config = {"frozen": True, "extra": "forbid"}

    hdr: Dict[str, Any] = Field(default_factory=dict)
    traj: Tuple[Dict[str, Any], ...] = ()


class Trial(BaseModel):
    """Trial definition.

    ``rvs`` and ``rvuse`` are None when the trial does not carry them at all,
    which is distinct from carrying an empty list.
    """

    model_config = {"frozen": True, "extra": "forbid"}

    name: StrictStr
    params: Dict[str, Any] = Field(default_factory=dict)
    perts: Tuple[PerturbationUsage, ...] = ()
    tgts: Tuple[StrictStr, ...]
    tags: Tuple[TaggedSection, ...] = ()
    rvs: Optional[Tuple[RandomVariable, ...]] = None
    rvuse: Optional[Tuple[RVAssignment, ...]] = None
    segs: Tuple[Segment, ...]

    @property
    def n_segs(self) -> int:
        return len(self.segs)

    @property
    def n_tgts(self) -> int:
        return len(self.tgts)


class TrialSubset(BaseModel):
    """Group of related trials inside a trial set."""

    model_config = {"frozen": True, "extra": "forbid"}

    name: StrictStr
    trials: Tuple[Trial, ...] = ()


class TrialSet(BaseModel):
    """Named container of trials and trial subsets."""

    model_config = {"frozen": True, "extra": "forbid"}

    name: StrictStr
    children: Tuple[Union[Trial, TrialSubset], ...] = ()

    def find(self, name: str) -> Optional[Union[Trial, TrialSubset]]:
        """Return the trial or subset called ``name`` or None."""
        for child in self.children:
            if child.name == name:
                return child
        return None

    def iter_trials(self):
        """Yield every trial in the set, descending into subsets."""
        for child in self.children:
            if isinstance(child, TrialSubset):
                yield from child.trials
            else:
                yield child
