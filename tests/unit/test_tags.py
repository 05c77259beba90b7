"""Unit tests for the tagged-section index."""

import pytest

pytestmark = pytest.mark.unit


def _tag(label, start, end):
    from jmxdoc.domain.trials import TaggedSection

    return TaggedSection(label=label, start=start, end=end)


class TestInsert:
    """Test inserting sections into one trial's index."""

    def test_Should_KeepSortedByStart_When_InsertedOutOfOrder(self):
        from jmxdoc.tags import TaggedSectionIndex

        index = TaggedSectionIndex(n_segs=10)
        index.insert(_tag("late", 7, 9))
        position = index.insert(_tag("early", 1, 2))
        index.insert(_tag("middle", 4, 5))

        assert position == 0
        assert index.labels() == ["early", "middle", "late"]
        assert len(index) == 3

    def test_Should_RejectOverlap_When_SpansIntersect(self):
        from jmxdoc.domain.exceptions import StructureError
        from jmxdoc.tags import TaggedSectionIndex

        index = TaggedSectionIndex(n_segs=5)
        index.insert(_tag("a", 1, 3))

        with pytest.raises(StructureError, match="overlaps"):
            index.insert(_tag("b", 2, 4))

    def test_Should_RejectOverlap_When_SpansShareEndpoint(self):
        from jmxdoc.domain.exceptions import StructureError
        from jmxdoc.tags import TaggedSectionIndex

        index = TaggedSectionIndex(n_segs=5)
        index.insert(_tag("a", 1, 3))

        with pytest.raises(StructureError):
            index.insert(_tag("b", 3, 5))

    def test_Should_RejectOverlap_When_NewSpanContainsExisting(self):
        from jmxdoc.domain.exceptions import StructureError
        from jmxdoc.tags import TaggedSectionIndex

        index = TaggedSectionIndex(n_segs=8)
        index.insert(_tag("inner", 3, 4))

        with pytest.raises(StructureError):
            index.insert(_tag("outer", 1, 8))

    def test_Should_RejectReversedSpan_When_EndBeforeStart(self):
        from jmxdoc.domain.exceptions import StructureError
        from jmxdoc.tags import TaggedSectionIndex

        with pytest.raises(StructureError, match="ends before it starts"):
            TaggedSectionIndex(n_segs=5).insert(_tag("rev", 3, 2))

    @pytest.mark.parametrize("start,end", [(0, 1), (2, 6)])
    def test_Should_RejectOutOfRange_When_IndexOutsideSegments(self, start, end):
        from jmxdoc.domain.exceptions import StructureError
        from jmxdoc.tags import TaggedSectionIndex

        with pytest.raises(StructureError, match="invalid segment index"):
            TaggedSectionIndex(n_segs=5).insert(_tag("x", start, end))

    def test_Should_RejectDuplicateLabel_When_SpansDisjoint(self):
        from jmxdoc.domain.exceptions import StructureError
        from jmxdoc.tags import TaggedSectionIndex

        index = TaggedSectionIndex(n_segs=5)
        index.insert(_tag("a", 1, 1))

        with pytest.raises(StructureError, match="duplicate label"):
            index.insert(_tag("a", 3, 3))

    @pytest.mark.parametrize("label", ["", "x" * 18])
    def test_Should_RejectLabel_When_LengthOutside1To17(self, label):
        from jmxdoc.domain.exceptions import ParameterError
        from jmxdoc.tags import TaggedSectionIndex

        with pytest.raises(ParameterError):
            TaggedSectionIndex(n_segs=5).insert(_tag(label, 1, 1))

    def test_Should_LeaveIndexUnchanged_When_InsertFails(self):
        from jmxdoc.domain.exceptions import StructureError
        from jmxdoc.tags import TaggedSectionIndex

        index = TaggedSectionIndex(n_segs=5)
        index.insert(_tag("a", 2, 3))
        with pytest.raises(StructureError):
            index.insert(_tag("b", 1, 2))

        assert index.sections == (_tag("a", 2, 3),)


class TestValidateTaggedSections:
    """Test validating a whole trial's tag list."""

    def test_Should_ReturnIndex_When_AllSectionsDisjoint(self):
        from jmxdoc.tags import validate_tagged_sections

        index = validate_tagged_sections([_tag("b", 4, 5), _tag("a", 1, 3)], n_segs=5)

        assert index.labels() == ["a", "b"]
