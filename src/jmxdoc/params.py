"""Parameter schema registry.

Every keyed parameter list in a JMX document (target params, general trial
params, segment headers, trajectories) is checked against one closed table
keyed by ``(discriminator, parameter-name)``. A discriminator is one of the
nine target types, or ``"trial"``, ``"segment"`` or ``"trajectory"``.

Each table row is a ParamRule: the value shape (a pydantic type, parsed with a
TypeAdapter), the registered default, an optional range predicate, an optional
normalizer and an ``obsolete`` flag. Range predicates receive a RuleContext so
that bounds depending on the trial (segment and target counts) or on the target
type (bar vs. flowfield window dimensions) stay in the table instead of in
per-type branches.

Key Features:
-------------
- **Closed table**: an unknown (discriminator, name) pair is a ParameterError
- **Defaults**: unspecified parameters take their registered default and are
  never required
- **Normalization**: GUI aperture aliases are rewritten to canonical names
- **Obsolete parameters**: accepted, dropped and logged at WARNING

Usage:
------
>>> from jmxdoc.params import RuleContext, validate_params
>>> validate_params("grating", {"grat1": [0x808080, 0x646464, 1.0, 0, 0]})
{'grat1': [8421504, 6579300, 1.0, 0, 0]}
>>> validate_params("trial", {"startseg": 2}, RuleContext("trial", n_segs=3, n_tgts=1))
{'startseg': 2}
"""

from dataclasses import dataclass, field
import logging
from typing import Annotated, Any, Callable, Dict, Iterable, List, Mapping, Optional, Sequence, Tuple, Union

from pydantic import Field, StrictFloat, StrictInt, StrictStr, TypeAdapter, ValidationError

from jmxdoc.domain.exceptions import ParameterError
from jmxdoc.names import is_legal_media_name
from jmxdoc.vocabulary import APERTURE_ALIASES, APERTURES, SPECIAL_OPS, TARGET_TYPES, VSTAB_MODES

logger = logging.getLogger(__name__)

Int = StrictInt
Number = Union[StrictInt, StrictFloat]
Text = StrictStr

TRIAL = "trial"
SEGMENT = "segment"
TRAJECTORY = "trajectory"


def vector(item: Any, min_length: int, max_length: Optional[int] = None) -> Any:
    """Shape of a JSON array of ``item`` with ``min_length..max_length`` elements."""
    if max_length is None:
        max_length = min_length
    return Annotated[List[item], Field(min_length=min_length, max_length=max_length)]


@dataclass(frozen=True)
class RuleContext:
    """Bounds a parameter value may depend on.

    Attributes:
        variant: Discriminator of the owning object (e.g. "bar", "trial")
        n_segs: Number of segments in the owning trial
        n_tgts: Number of participating targets in the owning trial
    """

    variant: str
    n_segs: int = 0
    n_tgts: int = 0


@dataclass(frozen=True)
class ParamRule:
    """Validation rule for one (discriminator, parameter) pair."""

    name: str
    shape: Any
    default: Any = None
    check: Optional[Callable[[Any, RuleContext], bool]] = None
    reason: str = "value out of range"
    normalize: Optional[Callable[[Any, RuleContext], Any]] = None
    obsolete: bool = False
    adapter: TypeAdapter = field(init=False, repr=False, compare=False)

    def __post_init__(self):
        object.__setattr__(self, "adapter", TypeAdapter(self.shape))

    def validate(self, discriminator: str, value: Any, ctx: RuleContext) -> Any:
        """Parse, normalize and range-check ``value``; return the normalized value."""
        try:
            parsed = self.adapter.validate_python(value)
        except ValidationError as exc:
            first = exc.errors()[0]
            raise ParameterError(discriminator, self.name, value, reason=f"wrong shape ({first['msg']})") from exc

        if self.normalize is not None:
            parsed = self.normalize(parsed, ctx)
        if self.check is not None and not self.check(parsed, ctx):
            raise ParameterError(discriminator, self.name, value, reason=self.reason)
        return parsed


# =============================================================================
# Range predicates
# =============================================================================


def _between(lo, hi):
    return lambda v, ctx: lo <= v <= hi


def _each_between(lo, hi):
    return lambda v, ctx: all(lo <= x <= hi for x in v)


def _seg_index(lo):
    return lambda v, ctx: lo <= v <= ctx.n_segs


def _normalize_aperture(value: str, ctx: RuleContext) -> str:
    return APERTURE_ALIASES.get(value, value)


def _check_aperture(value: str, ctx: RuleContext) -> bool:
    if value not in APERTURES:
        return False
    return not (ctx.variant in ("grating", "plaid") and "annu" in value)


def _check_dim(v: List[float], ctx: RuleContext) -> bool:
    w, h = v[0], v[1]
    min_w = 0 if ctx.variant == "bar" else 0.01
    if not (min_w <= w <= 120 and 0.01 <= h <= 120):
        return False
    if ctx.variant == "flowfield" and not h < w:
        return False
    if ctx.variant == "bar" and len(v) >= 3 and not 0 <= v[2] < 360:
        return False
    if ctx.variant in ("dotpatch", "spot"):
        if len(v) >= 3 and not 0.01 <= v[2] < w:
            return False
        if len(v) == 4 and not 0.01 <= v[3] < h:
            return False
    return True


def _check_noise(v: List[int], ctx: RuleContext) -> bool:
    is_dir, is_mult, rng, interval = v
    if is_dir:
        lo, hi = 0, 180
    elif is_mult:
        lo, hi = 1, 7
    else:
        lo, hi = 0, 300
    return lo <= rng <= hi and interval >= 0


def _check_grating(v: List[float], ctx: RuleContext) -> bool:
    mean, con, sfreq, sphase, daxis = v
    if not (isinstance(mean, int) and isinstance(con, int)):
        return False
    con_bytes = ((con >> 16) & 0xFF, (con >> 8) & 0xFF, con & 0xFF)
    if any(b > 100 for b in con_bytes):
        return False
    return sfreq >= 0.01 and 0 <= sphase < 360 and -180 <= daxis <= 180


def _check_rew_whvr(v: List[int], ctx: RuleContext) -> bool:
    return all(0 <= v[j] < v[j + 1] <= 100 for j in (0, 2))


def _check_mtr(v: List[int], ctx: RuleContext) -> bool:
    return 1 <= v[1] <= 999 and 100 <= v[2] <= 9999


def _check_stair(v: List[float], ctx: RuleContext) -> bool:
    number, strength, channel = v
    if not (isinstance(number, int) and isinstance(channel, int)):
        return False
    return 0 <= number <= 5 and 0 <= strength < 1000


def _check_dur(v: List[int], ctx: RuleContext) -> bool:
    return 0 <= v[0] <= v[1]


# =============================================================================
# Registry table
# =============================================================================

_RULES: Dict[Tuple[str, str], ParamRule] = {}

_DOT_TYPES = ("point", "dotpatch", "flowfield")
_APERTURE_TYPES = ("dotpatch", "spot", "grating", "plaid")
_DIM_TYPES = ("dotpatch", "flowfield", "bar", "spot", "grating", "plaid")

_DEFAULT_GRATING = [0x808080, 0x646464, 1.0, 0, 0]


def _register(discriminators: Iterable[str], name: str, shape: Any, default: Any = None, **kwargs: Any) -> None:
    """Add one row per discriminator; ``default`` may be a per-discriminator dict."""
    for disc in discriminators:
        value = default.get(disc) if isinstance(default, dict) else default
        _RULES[(disc, name)] = ParamRule(name=name, shape=shape, default=value, **kwargs)


# Targets
_register(_DOT_TYPES, "dotsize", Int, 1, check=_between(1, 10), reason="must be in [1, 10]")
_register(_DOT_TYPES + ("bar", "spot"), "rgb", Int, 0xFFFFFF)
_register(("dotpatch",), "rgbcon", Int, 0)
_register(("dotpatch",), "seed", Int, 0)
_register(("dotpatch",), "wrtscreen", Int, 0)
_register(("dotpatch", "flowfield"), "ndots", Int, 100, check=_between(0, 9999), reason="must be in [0, 9999]")
_register(
    _APERTURE_TYPES,
    "aperture",
    Text,
    "rect",
    check=_check_aperture,
    normalize=_normalize_aperture,
    reason="unknown aperture, or annular aperture on a grating/plaid",
)
_register(
    _DIM_TYPES,
    "dim",
    vector(Number, 2, 4),
    {
        "dotpatch": [10, 10, 5, 5],
        "flowfield": [30, 0.5],
        "bar": [10, 10, 0],
        "spot": [10, 10, 5, 5],
        "grating": [10, 10],
        "plaid": [10, 10],
    },
    check=_check_dim,
    reason="window dimensions out of range",
)
_register(_APERTURE_TYPES, "sigma", vector(Number, 2), [0, 0], check=_each_between(0, float("inf")), reason="must be >= 0")
_register(("dotpatch",), "pct", Int, 100, check=_between(0, 100), reason="must be in [0, 100]")
_register(
    ("dotpatch",),
    "dotlf",
    vector(Number, 2),
    [1, 0],
    check=lambda v, ctx: isinstance(v[0], int) and v[1] >= 0,
    reason="expected [int flag, max life >= 0]",
)
_register(("dotpatch",), "noise", vector(Int, 4), [0, 0, 100, 0], check=_check_noise, reason="noise range or interval out of range")
_register(("grating", "plaid"), "square", Int, 0)
_register(("grating", "plaid"), "oriadj", Int, 0)
_register(("plaid",), "indep", Int, 0)
_register(("grating", "plaid"), "grat1", vector(Number, 5), _DEFAULT_GRATING, check=_check_grating, reason="grating parameters out of range")
_register(("plaid",), "grat2", vector(Number, 5), _DEFAULT_GRATING, check=_check_grating, reason="grating parameters out of range")
_register(("movie", "image"), "folder", Text, "folderName", check=lambda v, ctx: is_legal_media_name(v), reason="illegal media name")
_register(("movie", "image"), "file", Text, "fileName", check=lambda v, ctx: is_legal_media_name(v), reason="illegal media name")
_register(("movie",), "flags", vector(Int, 3), [0, 0, 0])
_register(TARGET_TYPES, "flicker", vector(Int, 3), [0, 0, 0], check=_each_between(0, 99), reason="each value must be in [0, 99]")
_register(_DOT_TYPES, "disparity", Number, 0, check=lambda v, ctx: v >= 0, reason="must be >= 0")

# General trial parameters
_register((TRIAL,), "chancfg", Text, "default")
_register((TRIAL,), "wt", Int, 1, check=_between(0, 255), reason="must be in [0, 255]")
_register((TRIAL,), "keep", Int, 1)
_register((TRIAL,), "startseg", Int, 0, check=_seg_index(0), reason="must be in [0, #segs]")
_register((TRIAL,), "failsafeseg", Int, 0, check=_seg_index(0), reason="must be in [0, #segs]")
_register((TRIAL,), "specialseg", Int, 1, check=_seg_index(1), reason="must be in [1, #segs]")
_register((TRIAL,), "specialop", Text, "none", check=lambda v, ctx: v in SPECIAL_OPS, reason="unknown special operation")
_register((TRIAL,), "saccvt", Int, 100, check=_between(0, 999), reason="must be in [0, 999]")
_register(
    (TRIAL,),
    "marksegs",
    vector(Int, 2),
    [0, 0],
    check=lambda v, ctx: all(0 <= x <= ctx.n_segs for x in v),
    reason="each value must be in [0, #segs]",
)
_register((TRIAL,), "mtr", vector(Int, 3), [0, 10, 1000], check=_check_mtr, reason="expected length in [1, 999], interval in [100, 9999]")
_register((TRIAL,), "rewpulses", vector(Int, 2), [10, 10], check=_each_between(1, 999), reason="each value must be in [1, 999]")
_register((TRIAL,), "rewWHVR", vector(Int, 4), [0, 1, 0, 1], check=_check_rew_whvr, reason="expected 0 <= N < D <= 100")
_register((TRIAL,), "stair", vector(Number, 3), [0, 1.0, 0], check=_check_stair, reason="expected [N in 0..5, S in [0, 1000), I]")
_register((TRIAL,), "xydotseedalt", Any, obsolete=True)
_register((TRIAL,), "xyinterleave", Any, obsolete=True)

# Segment header
_register((SEGMENT,), "dur", vector(Int, 2), [1000, 1000], check=_check_dur, reason="expected 0 <= min <= max")
_register((SEGMENT,), "fix1", Int, 0, check=lambda v, ctx: 0 <= v <= ctx.n_tgts, reason="must be in [0, #tgts]")
_register((SEGMENT,), "fix2", Int, 0, check=lambda v, ctx: 0 <= v <= ctx.n_tgts, reason="must be in [0, #tgts]")
_register((SEGMENT,), "fixacc", vector(Number, 2), [5.0, 5.0], check=lambda v, ctx: all(x >= 0.1 for x in v), reason="each value must be >= 0.1")
_register((SEGMENT,), "grace", Int, 0, check=lambda v, ctx: v >= 0, reason="must be >= 0")
_register((SEGMENT,), "mtrena", Int, 0)
_register((SEGMENT,), "chkrsp", Int, 0)
_register((SEGMENT,), "rmvsync", Int, 0)
_register((SEGMENT,), "marker", Int, 0, check=_between(0, 10), reason="must be in [0, 10]")
_register((SEGMENT,), "xyframe", Any, obsolete=True)

# Trajectory
_register((TRAJECTORY,), "on", Int, 0)
_register((TRAJECTORY,), "abs", Int, 0)
_register((TRAJECTORY,), "snap", Int, 0)
_register((TRAJECTORY,), "vstab", Text, "none", check=lambda v, ctx: v in VSTAB_MODES, reason="must be one of none, h, v, hv")
for _name in ("pos", "vel", "acc", "patvel", "patacc"):
    _register((TRAJECTORY,), _name, vector(Number, 2), [0, 0])


# =============================================================================
# Lookup and validation
# =============================================================================


def discriminators() -> Tuple[str, ...]:
    """All discriminators known to the registry."""
    return TARGET_TYPES + (TRIAL, SEGMENT, TRAJECTORY)


def parameter_names(discriminator: str, include_obsolete: bool = False) -> List[str]:
    """Parameter names registered for ``discriminator``, in table order."""
    return [name for (disc, name), rule in _RULES.items() if disc == discriminator and (include_obsolete or not rule.obsolete)]


def lookup(discriminator: str, name: str, value: Any = None) -> ParamRule:
    """Return the rule for ``(discriminator, name)``.

    Raises:
        ParameterError: If the pair is not in the table
    """
    rule = _RULES.get((discriminator, name))
    if rule is None:
        raise ParameterError(discriminator, name, value, reason="not recognized")
    return rule


def validate_param(discriminator: str, name: str, value: Any, ctx: Optional[RuleContext] = None) -> Any:
    """Validate one parameter value; return it normalized."""
    if ctx is None:
        ctx = RuleContext(discriminator)
    rule = lookup(discriminator, name, value)
    if rule.obsolete:
        return value
    return rule.validate(discriminator, value, ctx)


def validate_params(discriminator: str, params: Mapping[str, Any], ctx: Optional[RuleContext] = None) -> Dict[str, Any]:
    """Validate an explicit parameter mapping.

    Obsolete parameters are dropped from the returned mapping. Order of the
    remaining parameters is preserved.

    Returns:
        Normalized ordered mapping

    Raises:
        ParameterError: On the first unknown name or failing value
    """
    if ctx is None:
        ctx = RuleContext(discriminator)

    result: Dict[str, Any] = {}
    for name, value in params.items():
        rule = lookup(discriminator, name, value)
        if rule.obsolete:
            logger.warning(f"Dropping obsolete {discriminator} parameter '{name}'")
            continue
        result[name] = rule.validate(discriminator, value, ctx)
    return result


def defaults(discriminator: str) -> Dict[str, Any]:
    """Registered default of every non-obsolete parameter of ``discriminator``."""
    if discriminator not in discriminators():
        raise ParameterError(discriminator, "*", None, reason="unknown discriminator")
    return {name: _copy(_RULES[(discriminator, name)].default) for name in parameter_names(discriminator)}


def resolve(discriminator: str, params: Mapping[str, Any]) -> Dict[str, Any]:
    """Effective parameter values: defaults overlaid with ``params``."""
    effective = defaults(discriminator)
    effective.update(params)
    return effective


def params_from_pairs(pairs: Any, discriminator: str) -> Dict[str, Any]:
    """Parse a flattened ``[name, value, name, value, ...]`` list.

    Raises:
        ParameterError: Odd length, non-string name or repeated name
    """
    if isinstance(pairs, Mapping):
        return dict(pairs)
    if not isinstance(pairs, Sequence) or isinstance(pairs, str):
        raise ParameterError(discriminator, "params", pairs, reason="expected a list of name/value pairs")
    if len(pairs) % 2 != 0:
        raise ParameterError(discriminator, "params", list(pairs), reason="params array must have an even number of elements")

    result: Dict[str, Any] = {}
    for i in range(0, len(pairs), 2):
        name, value = pairs[i], pairs[i + 1]
        if not isinstance(name, str):
            raise ParameterError(discriminator, repr(name), value, reason="parameter name must be a string")
        if name in result:
            raise ParameterError(discriminator, name, value, reason="parameter specified more than once")
        result[name] = value
    return result


def params_to_pairs(params: Mapping[str, Any]) -> List[Any]:
    """Flatten a parameter mapping to ``[name, value, ...]``."""
    pairs: List[Any] = []
    for name, value in params.items():
        pairs.extend((name, _copy(value)))
    return pairs


def _copy(value: Any) -> Any:
    if isinstance(value, (list, tuple)):
        return list(value)
    return value
