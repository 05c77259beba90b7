"""Perturbation waveform model.

Persisted form: [name kind dur p1 p2 (p3)]. Sinusoids carry two defining
parameters [period phase]; pulse trains [ramp pulse interval]; noise kinds
[interval mean seed].
"""

from typing import Tuple, Union

from pydantic import BaseModel, StrictFloat, StrictInt, StrictStr


class Perturbation(BaseModel):
    """Named perturbation waveform."""

    model_config = {"frozen": True, "extra": "forbid"}

    name: StrictStr
    kind: StrictStr  # Enum validated at insert/load time
    duration: StrictInt
    params: Tuple[Union[StrictInt, StrictFloat], ...]
