"""Document root model."""

from typing import Optional, Tuple

from pydantic import BaseModel, Field

from jmxdoc.domain.channels import ChannelConfig
from jmxdoc.domain.perturbations import Perturbation
from jmxdoc.domain.settings import AppSettings
from jmxdoc.domain.targets import TargetSet
from jmxdoc.domain.trials import TrialSet


class Document(BaseModel):
    """Complete experiment description.

    An empty Document (all defaults) is a valid document. The persisted version
    is not stored here; documents are always written at the current version.
    """

    model_config = {"frozen": True, "extra": "forbid"}

    settings: AppSettings = Field(default_factory=AppSettings)
    chancfgs: Tuple[ChannelConfig, ...] = ()
    perts: Tuple[Perturbation, ...] = ()
    target_sets: Tuple[TargetSet, ...] = ()
    trial_sets: Tuple[TrialSet, ...] = ()

    def find_channel_config(self, name: str) -> Optional[ChannelConfig]:
        return next((c for c in self.chancfgs if c.name == name), None)

    def find_perturbation(self, name: str) -> Optional[Perturbation]:
        return next((p for p in self.perts if p.name == name), None)

    def find_target_set(self, name: str) -> Optional[TargetSet]:
        return next((s for s in self.target_sets if s.name == name), None)

    def find_trial_set(self, name: str) -> Optional[TrialSet]:
        return next((s for s in self.trial_sets if s.name == name), None)
