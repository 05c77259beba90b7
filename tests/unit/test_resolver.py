"""Unit tests for trial cross-reference resolution."""

import pytest

pytestmark = pytest.mark.unit


def _trial(**overrides):
    from jmxdoc.domain.trials import Segment, Trial

    fields = {"name": "t", "tgts": ("CHAIR",), "segs": (Segment(traj=({},)),)}
    fields.update(overrides)
    return Trial(**fields)


class TestSplitTargetRef:
    """Test "set/target" parsing."""

    def test_Should_Split_When_ExactlyOneSlash(self):
        from jmxdoc.resolver import split_target_ref

        assert split_target_ref("SetA/fp") == ("SetA", "fp")

    @pytest.mark.parametrize("ref", ["fp", "a/b/c", "/fp"])
    def test_Should_ReturnNone_When_Malformed(self, ref):
        from jmxdoc.resolver import split_target_ref

        assert split_target_ref(ref) is None


class TestResolveTargetRef:
    """Test target list entries."""

    def test_Should_ReturnNone_When_EntryIsChair(self, base_document):
        from jmxdoc.resolver import resolve_target_ref

        assert resolve_target_ref(base_document, "CHAIR") is None

    def test_Should_ReturnTarget_When_SetAndTargetExist(self, base_document):
        from jmxdoc.resolver import resolve_target_ref

        target = resolve_target_ref(base_document, "SetA/fp")

        assert target.type == "spot"

    def test_Should_RaiseReferenceError_When_TargetMissingFromSet(self, base_document):
        from jmxdoc.domain.exceptions import UnresolvedReferenceError
        from jmxdoc.resolver import resolve_target_ref

        with pytest.raises(UnresolvedReferenceError) as exc_info:
            resolve_target_ref(base_document, "SetA/foo")

        assert exc_info.value.reference == "SetA/foo"

    def test_Should_RaiseReferenceError_When_SetMissing(self, base_document):
        from jmxdoc.domain.exceptions import UnresolvedReferenceError
        from jmxdoc.resolver import resolve_target_ref

        with pytest.raises(UnresolvedReferenceError) as exc_info:
            resolve_target_ref(base_document, "Nope/fp")

        assert exc_info.value.kind == "target set"


class TestResolveTrialReferences:
    """Test resolution of every name a trial uses."""

    def test_Should_Pass_When_ChancfgIsDefault(self, base_document):
        from jmxdoc.resolver import resolve_trial_references

        resolve_trial_references(base_document, _trial(params={"chancfg": "default"}))

    def test_Should_Raise_When_ChannelConfigMissing(self, base_document):
        from jmxdoc.domain.exceptions import UnresolvedReferenceError
        from jmxdoc.resolver import resolve_trial_references

        with pytest.raises(UnresolvedReferenceError, match="channel configuration"):
            resolve_trial_references(base_document, _trial(params={"chancfg": "other"}))

    def test_Should_Raise_When_PerturbationMissing(self, base_document):
        from jmxdoc.domain.exceptions import UnresolvedReferenceError
        from jmxdoc.domain.trials import PerturbationUsage
        from jmxdoc.resolver import resolve_trial_references

        usage = PerturbationUsage(name="ghost", amplitude=1, segment=1, target=1, component="winH")

        with pytest.raises(UnresolvedReferenceError, match="perturbation"):
            resolve_trial_references(base_document, _trial(perts=(usage,)))

    def test_Should_RaiseStructureError_When_TargetListedTwice(self, base_document):
        from jmxdoc.domain.exceptions import StructureError
        from jmxdoc.resolver import resolve_trial_references

        with pytest.raises(StructureError):
            resolve_trial_references(base_document, _trial(tgts=("SetA/fp", "SetA/fp")))
