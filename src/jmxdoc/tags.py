"""Tagged-section index for one trial.

Tagged sections are labeled, inclusive ``[start, end]`` spans of 1-based
segment indices. Within one trial the labels are unique and the spans are
pairwise disjoint under closed-interval semantics: two sections that share an
endpoint overlap.

The index keeps sections sorted by start so that a single scan finds every
conflict and the insertion point together.
"""

from typing import List, Sequence, Tuple

from jmxdoc.domain.exceptions import ParameterError, StructureError
from jmxdoc.domain.trials import TaggedSection
from jmxdoc.vocabulary import TAG_LABEL_MAX_LENGTH


class TaggedSectionIndex:
    """Sorted, non-overlapping tagged sections of a trial with ``n_segs`` segments."""

    def __init__(self, n_segs: int):
        self.n_segs = n_segs
        self._sections: List[TaggedSection] = []

    def __len__(self) -> int:
        return len(self._sections)

    @property
    def sections(self) -> Tuple[TaggedSection, ...]:
        return tuple(self._sections)

    def labels(self) -> List[str]:
        return [s.label for s in self._sections]

    def insert(self, section: TaggedSection) -> int:
        """Insert ``section``; return its position in start order.

        Raises:
            ParameterError: Label is not 1-17 characters
            StructureError: Duplicate label, bad bounds, or overlap with an existing section
        """
        label, start, end = section.label, section.start, section.end
        if not 0 < len(label) <= TAG_LABEL_MAX_LENGTH:
            raise ParameterError("tag", "label", label, reason=f"must be 1-{TAG_LABEL_MAX_LENGTH} characters")
        if label in self.labels():
            raise StructureError(f"Tagged section has duplicate label: {label!r}", context={"label": label})
        if end < start:
            raise StructureError(f"Tagged section {label!r} ends before it starts: [{start}, {end}]", context={"label": label})
        if start < 1 or end > self.n_segs:
            raise StructureError(
                f"Tagged section {label!r} has an invalid segment index: [{start}, {end}] not within [1, {self.n_segs}]",
                context={"label": label},
            )

        position = len(self._sections)
        for i, other in enumerate(self._sections):
            if start <= other.end and other.start <= end:
                raise StructureError(
                    f"Tagged section {label!r} [{start}, {end}] overlaps {other.label!r} [{other.start}, {other.end}]",
                    context={"label": label, "other": other.label},
                )
            if start < other.start:
                position = i
                break

        self._sections.insert(position, section)
        return position


def validate_tagged_sections(sections: Sequence[TaggedSection], n_segs: int) -> TaggedSectionIndex:
    """Insert every section into a fresh index, failing on the first conflict."""
    index = TaggedSectionIndex(n_segs)
    for section in sections:
        index.insert(section)
    return index
