"""Target and target set models.

Target parameters are an ordered name -> value mapping. Which names are legal,
and the shape of each value, depends on the target type and is looked up in
jmxdoc.params rather than encoded in the model.
"""

from typing import Any, Dict, Tuple

from pydantic import BaseModel, Field, StrictStr


class Target(BaseModel):
    """Visual target definition.

    Attributes:
        name: Target name, unique within its set
        type: One of the target types in jmxdoc.vocabulary.TARGET_TYPES
        params: Explicit parameter values; unspecified parameters take registry defaults
    """

    model_config = {"frozen": True, "extra": "forbid"}

    name: StrictStr
    type: StrictStr
    params: Dict[str, Any] = Field(default_factory=dict)


class TargetSet(BaseModel):
    """Named container of targets."""

    model_config = {"frozen": True, "extra": "forbid"}

    name: StrictStr
    targets: Tuple[Target, ...] = ()

    def find(self, name: str):
        """Return the target called ``name`` or None."""
        for target in self.targets:
            if target.name == name:
                return target
        return None
