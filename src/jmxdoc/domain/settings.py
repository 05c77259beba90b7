"""Application settings persisted with every JMX document.

The settings block is always present and is replaced wholesale. Each field is a
fixed-length vector in the persisted form:

- rmv: display properties [w h d bkg spotsize flashdur]
- fix: fixation accuracy in deg [h v]
- other: [fixdur rew1 rew2 ovride varatio audiorew beep vstabwin]

Value ranges are enforced by jmxdoc.validation.validate_settings.
"""

from typing import Tuple, Union

from pydantic import BaseModel, StrictFloat, StrictInt

DEFAULT_RMV: Tuple[int, ...] = (400, 300, 800, 0, 0, 1)
DEFAULT_FIX: Tuple[float, ...] = (2.0, 2.0)
DEFAULT_OTHER: Tuple[int, ...] = (1500, 25, 25, 0, 1, 0, 0, 1)


class AppSettings(BaseModel):
    """Display, fixation and reward settings."""

    model_config = {"frozen": True, "extra": "forbid"}

    rmv: Tuple[StrictInt, ...] = DEFAULT_RMV
    fix: Tuple[Union[StrictInt, StrictFloat], ...] = DEFAULT_FIX
    other: Tuple[StrictInt, ...] = DEFAULT_OTHER
