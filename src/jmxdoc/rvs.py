"""Random-variable slots and their assignments to segment parameters.

A trial defines up to 10 random variables, addressed in formulas as ``x0`` to
``x9`` (0-based) and in assignments by 1-based index. Distribution kinds and
their constraints:

- uniform(seed, A, B): seed >= 0, A < B
- normal(seed, mean, stdev, spread): seed >= 0, stdev > 0, spread >= 3*stdev
- exponential(seed, rate, spread): seed >= 0, rate > 0, spread >= 3/rate
- gamma(seed, shape, scale, spread): seed >= 0, shape > 0, scale > 0,
  spread >= scale*(shape + 3*sqrt(shape))
- function(formula): formula over other slots

Formula checks are syntactic only. A function may not reference its own slot
or a slot beyond the defined count. Referencing another function slot is
accepted; that gap is kept deliberately so documents accepted before stay
loadable.
"""

import math
import re
from typing import List, Optional, Sequence

from jmxdoc.domain.exceptions import ParameterError, StructureError
from jmxdoc.domain.trials import RandomVariable, RVAssignment
from jmxdoc.vocabulary import MAX_RANDOM_VARIABLES, RV_ASSIGNABLE_PARAMS, RV_KINDS, RV_SEGMENT_PARAMS

# Number of shape parameters after the seed, per distribution kind
RV_PARAM_COUNTS = {"uniform": 2, "normal": 3, "exponential": 2, "gamma": 3}

_SLOT_TOKEN = re.compile(r"(?<![A-Za-z0-9_])x(\d+)")


def formula_references(formula: str) -> List[int]:
    """Slot indices referenced by ``formula``, in order of appearance."""
    return [int(m.group(1)) for m in _SLOT_TOKEN.finditer(formula)]


def _check_distribution(rv: RandomVariable, slot: int) -> None:
    where = f"x{slot}"
    expected = RV_PARAM_COUNTS[rv.kind]
    if rv.seed is None or len(rv.params) != expected:
        raise ParameterError(f"{rv.kind} RV", where, list(rv.params), reason=f"expected a seed and {expected} parameters")
    if rv.formula is not None:
        raise ParameterError(f"{rv.kind} RV", where, rv.formula, reason="only function RVs carry a formula")
    if rv.seed < 0:
        raise ParameterError(f"{rv.kind} RV", "seed", rv.seed, reason="must be >= 0")

    p = rv.params
    if rv.kind == "uniform":
        ok = p[0] < p[1]
    elif rv.kind == "normal":
        ok = p[1] > 0 and p[2] >= 3 * p[1]
    elif rv.kind == "exponential":
        ok = p[0] > 0 and p[1] >= 3 / p[0]
    else:
        ok = p[0] > 0 and p[1] > 0 and p[2] >= p[1] * (p[0] + 3 * math.sqrt(p[0]))
    if not ok:
        raise ParameterError(f"{rv.kind} RV", where, list(p), reason=f"invalid parameter(s) for a '{rv.kind}' random variable")


def validate_random_variable(rv: RandomVariable, slot: int, n_rvs: int) -> None:
    """Validate the RV in 0-based ``slot`` of a trial defining ``n_rvs`` RVs.

    Raises:
        ParameterError: Unknown kind or bad distribution parameters
        StructureError: Function formula references itself or an undefined slot
    """
    if rv.kind not in RV_KINDS:
        raise ParameterError("RV", f"x{slot}", rv.kind, reason=f"kind must be one of {', '.join(RV_KINDS)}")

    if rv.kind != "function":
        _check_distribution(rv, slot)
        return

    if rv.formula is None or rv.seed is not None or rv.params:
        raise ParameterError("function RV", f"x{slot}", rv.formula, reason="a function RV carries only a formula")
    for ref in formula_references(rv.formula):
        if ref == slot:
            raise StructureError(f"Function RV x{slot} cannot depend on its own value", context={"rv": slot, "formula": rv.formula})
        if ref >= n_rvs:
            raise StructureError(f"Function RV x{slot} depends on undefined RV x{ref}", context={"rv": slot, "formula": rv.formula})


def validate_random_variables(rvs: Optional[Sequence[RandomVariable]]) -> int:
    """Validate every slot; return the number of defined RVs."""
    if rvs is None:
        return 0
    if len(rvs) > MAX_RANDOM_VARIABLES:
        raise StructureError(f"A maximum of {MAX_RANDOM_VARIABLES} RVs may be defined in a trial (got {len(rvs)})")
    for slot, rv in enumerate(rvs):
        try:
            validate_random_variable(rv, slot, len(rvs))
        except (ParameterError, StructureError) as exc:
            raise exc.with_context(field="rvs", index=slot)
    return len(rvs)


def validate_assignment(assign: RVAssignment, n_rvs: int, n_segs: int, n_tgts: int) -> None:
    """Validate one ``[rv, param, seg, tgt]`` assignment (all indices 1-based).

    The target index is not checked for the segment duration parameters.
    """
    if not 1 <= assign.rv <= n_rvs:
        raise StructureError(f"RV assignment refers to undefined RV {assign.rv} (trial defines {n_rvs})", context={"rv": assign.rv})
    if assign.param not in RV_ASSIGNABLE_PARAMS:
        raise ParameterError("rvuse", "param", assign.param, reason="not an RV-assignable parameter")
    if not 1 <= assign.segment <= n_segs:
        raise ParameterError("rvuse", "segment", assign.segment, reason=f"must be in [1, {n_segs}]")
    if assign.param not in RV_SEGMENT_PARAMS and not 1 <= assign.target <= n_tgts:
        raise ParameterError("rvuse", "target", assign.target, reason=f"must be in [1, {n_tgts}]")


def validate_assignments(rvuse: Optional[Sequence[RVAssignment]], n_rvs: int, n_segs: int, n_tgts: int) -> None:
    """Validate every assignment; nothing is checked when the trial defines no RVs."""
    if n_rvs == 0:
        return
    for i, assign in enumerate(rvuse or ()):
        try:
            validate_assignment(assign, n_rvs, n_segs, n_tgts)
        except (ParameterError, StructureError) as exc:
            raise exc.with_context(field="rvuse", index=i)
