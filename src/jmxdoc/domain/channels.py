"""Channel configuration models.

A channel configuration is a named list of per-signal display/record
descriptors. Persisted form of one descriptor: [id rec? dsp? offset gain color].
"""

from typing import Tuple

from pydantic import BaseModel, StrictInt, StrictStr


class Channel(BaseModel):
    """One data channel descriptor.

    Attributes:
        id: Canonical channel id (generic aiN aliases are normalized on validation)
        record: Record flag (nonzero = on)
        display: Display flag (nonzero = on)
        offset: Trace offset, [-90000, 90000]
        gain: Trace gain exponent, [-5, 5]
        color: Trace color name
    """

    model_config = {"frozen": True, "extra": "forbid"}

    id: StrictStr
    record: StrictInt
    display: StrictInt
    offset: StrictInt
    gain: StrictInt
    color: StrictStr


class ChannelConfig(BaseModel):
    """Named channel configuration."""

    model_config = {"frozen": True, "extra": "forbid"}

    name: StrictStr
    channels: Tuple[Channel, ...] = ()
