"""Unit tests for the persisted JSON form."""

import json

import pytest

pytestmark = pytest.mark.unit


class TestDocumentToDict:
    """Test emitted key order and flattening."""

    def test_Should_EmitTopLevelKeysInOrder_When_Serialized(self, sample_document):
        from jmxdoc.serialize import document_to_dict

        wire = document_to_dict(sample_document)

        assert list(wire) == ["version", "settings", "chancfgs", "perts", "targetSets", "trialSets"]
        assert wire["version"] == 4

    def test_Should_EmitTrialKeysInOrder_When_RVsPresent(self, sample_document):
        from jmxdoc.serialize import document_to_dict

        trial = document_to_dict(sample_document)["trialSets"][0]["trials"][0]

        assert list(trial) == ["name", "params", "perts", "tgts", "tags", "rvs", "rvuse", "segs"]
        assert trial["params"] == ["chancfg", "cfg1", "wt", 2, "startseg", 1]
        assert trial["rvs"] == [["uniform", 1, 0, 10], ["function", "2*x0"]]

    def test_Should_OmitRVKeys_When_TrialCarriesNone(self, sample_document):
        from jmxdoc.serialize import document_to_dict

        trial = document_to_dict(sample_document)["trialSets"][0]["trials"][2]

        assert trial["name"] == "t3"
        assert list(trial) == ["name", "params", "perts", "tgts", "tags", "segs"]

    def test_Should_EmitSubsetObject_When_SetHasSubset(self, sample_document):
        from jmxdoc.serialize import document_to_dict

        subset = document_to_dict(sample_document)["trialSets"][0]["trials"][1]

        assert list(subset) == ["subset", "trials"]
        assert subset["subset"] == "Sub"
        assert [t["name"] for t in subset["trials"]] == ["t2"]

    def test_Should_StoreCanonicalChannelId_When_AliasGiven(self, sample_document):
        from jmxdoc.serialize import document_to_dict

        channels = document_to_dict(sample_document)["chancfgs"][0]["channels"]

        assert channels[1] == ["vepos", 1, 0, 100, -1, "red"]


class TestDocumentFromDict:
    """Test the load pipeline: version, migration, parse, validation."""

    def test_Should_RestoreDocument_When_RoundTripped(self, sample_document):
        from jmxdoc.serialize import document_from_dict, document_to_dict

        restored = document_from_dict(json.loads(json.dumps(document_to_dict(sample_document))))

        assert restored.model_dump() == sample_document.model_dump()

    def test_Should_MigrateAndNormalize_When_LegacyFileLoaded(self, legacy_v1_path):
        from jmxdoc.serialize import document_from_dict

        doc = document_from_dict(json.loads(legacy_v1_path.read_text()))

        assert doc.settings.rmv == (1024, 768, 600, 16, 0, 1)
        assert doc.settings.other == (1000, 30, 30, 0, 2, 0, 1, 1)
        assert doc.chancfgs[0].channels[0].id == "hgpos"
        assert doc.perts[0].params == (500, 90)
        trial = next(doc.trial_sets[0].iter_trials())
        assert trial.params == {"chancfg": "eye"}
        assert trial.segs[0].hdr == {"dur": [300, 300]}
        assert trial.rvs is None

    def test_Should_WrapWithLocation_When_TrialInvalid(self, sample_document):
        from jmxdoc.domain.exceptions import DocumentLoadError, ParameterError
        from jmxdoc.serialize import document_from_dict, document_to_dict

        wire = document_to_dict(sample_document)
        wire["trialSets"][0]["trials"][1]["trials"][0]["params"] = ["wt", 999]

        with pytest.raises(DocumentLoadError) as exc_info:
            document_from_dict(wire)

        assert exc_info.value.context["location"] == "trialSets[0].trials[1].trials[0].params"
        assert exc_info.value.context["error_code"] == "PARAMETER_INVALID"
        assert isinstance(exc_info.value.__cause__, ParameterError)

    def test_Should_RaiseVersionError_When_VersionTooNew(self, sample_document):
        from jmxdoc.domain.exceptions import VersionError
        from jmxdoc.serialize import document_from_dict, document_to_dict

        wire = document_to_dict(sample_document)
        wire["version"] = 5

        with pytest.raises(VersionError):
            document_from_dict(wire)

    def test_Should_RejectNestedSubset_When_SubsetContainsSubset(self, sample_document):
        from jmxdoc.domain.exceptions import DocumentLoadError
        from jmxdoc.serialize import document_from_dict, document_to_dict

        wire = document_to_dict(sample_document)
        wire["trialSets"][0]["trials"][1]["trials"].append({"subset": "deeper", "trials": []})

        with pytest.raises(DocumentLoadError, match="cannot contain subsets"):
            document_from_dict(wire)

    def test_Should_RejectUnknownKey_When_TopLevelHasExtraField(self):
        from jmxdoc.domain.exceptions import DocumentLoadError
        from jmxdoc.serialize import document_from_dict

        raw = {"version": 4, "settings": {}, "chancfgs": [], "perts": [], "targetSets": [], "trialSets": [], "extra": 1}

        with pytest.raises(DocumentLoadError, match="extra"):
            document_from_dict(raw)

    def test_Should_ConvertShapeError_When_ChannelFieldHasWrongType(self):
        from jmxdoc.domain.exceptions import DocumentLoadError, ParameterError
        from jmxdoc.serialize import document_from_dict

        raw = {
            "version": 4,
            "settings": {},
            "chancfgs": [{"name": "c", "channels": [["hgpos", "yes", 1, 0, 0, "white"]]}],
            "perts": [],
            "targetSets": [],
            "trialSets": [],
        }

        with pytest.raises(DocumentLoadError) as exc_info:
            document_from_dict(raw)

        assert isinstance(exc_info.value.__cause__, ParameterError)
        assert exc_info.value.context["location"] == "chancfgs[0].channels[0]"


class TestPerturbationWire:
    """Test the 5/6-element perturbation array."""

    def test_Should_IgnoreThirdParam_When_Sinusoid(self):
        from jmxdoc.serialize import perturbation_from_wire, perturbation_to_wire

        pert = perturbation_from_wire(["s", "sinusoid", 100, 50, 0, 0])

        assert pert.params == (50, 0)
        assert perturbation_to_wire(pert) == ["s", "sinusoid", 100, 50, 0]

    def test_Should_Raise_When_PulseTrainHasTwoParams(self):
        from jmxdoc.domain.exceptions import ParameterError
        from jmxdoc.serialize import perturbation_from_wire

        with pytest.raises(ParameterError):
            perturbation_from_wire(["p", "pulse train", 100, 0, 10])

    @pytest.mark.parametrize("wire", [["p", "sinusoid", 100, 50], ["p", "sinusoid", 100, 50, 0, 0, 0]])
    def test_Should_Raise_When_ArrayLengthInvalid(self, wire):
        from jmxdoc.domain.exceptions import ParameterError
        from jmxdoc.serialize import perturbation_from_wire

        with pytest.raises(ParameterError, match="invalid array length"):
            perturbation_from_wire(wire)

    def test_Should_KeepKindField_When_PerturbationParsed(self):
        from jmxdoc.serialize import perturbation_from_wire

        pert = perturbation_from_wire(["n1", "gaussian noise", 2000.0, 10, 0.5, 42])

        assert pert.kind == "gaussian noise"
        assert pert.duration == 2000

    def test_Should_RaiseParameterError_When_DurationNotAnInteger(self):
        from jmxdoc.domain.exceptions import ParameterError
        from jmxdoc.serialize import perturbation_from_wire

        with pytest.raises(ParameterError) as exc_info:
            perturbation_from_wire(["p", "sinusoid", "long", 50, 0])

        assert exc_info.value.discriminator == "perturbation"
        assert exc_info.value.parameter == "duration"


class TestRandomVariableWire:
    """Test the RV arrays of a trial."""

    def test_Should_ParseBothForms_When_TrialHasRVs(self, make_trial):
        from jmxdoc.serialize import trial_from_wire

        wire = make_trial("t")
        wire["rvs"] = [["uniform", 0, 0, 1], ["function", "x0*2"]]

        trial = trial_from_wire(wire)

        assert [rv.kind for rv in trial.rvs] == ["uniform", "function"]
        assert trial.rvs[0].seed == 0
        assert trial.rvs[1].formula == "x0*2"

    def test_Should_RaiseParameterError_When_SeedNotAnInteger(self, make_trial):
        from jmxdoc.domain.exceptions import ParameterError
        from jmxdoc.serialize import trial_from_wire

        wire = make_trial("t")
        wire["rvs"] = [["uniform", "zero", 0, 1]]

        with pytest.raises(ParameterError) as exc_info:
            trial_from_wire(wire)

        assert exc_info.value.parameter == "seed"

class TestJsonText:
    """Test dumps/loads."""

    def test_Should_RoundTripText_When_DumpedAndLoaded(self, sample_document):
        from jmxdoc.serialize import dumps, loads

        assert loads(dumps(sample_document)).model_dump() == sample_document.model_dump()

    def test_Should_RaiseLoadError_When_TextNotJson(self):
        from jmxdoc.domain.exceptions import DocumentLoadError
        from jmxdoc.serialize import loads

        with pytest.raises(DocumentLoadError, match="not valid JSON"):
            loads("{version: 4")
