'''
Gender-compatibility rule shared by every search surface
(teacher search, course search, study-partner search, search results).
'''
from typing import Iterable, Optional, Callable, TypeVar

from pydantic import BaseModel, ConfigDict, Field

from ..database.db_enums import Gender, CourseAudience

T = TypeVar('T')

CHILDREN_LABEL = CourseAudience.CHILDREN.value
OPEN_AUDIENCE_LABELS = frozenset({'adults', CourseAudience.GENERAL.value})

# The audience label that addresses a viewer of the given gender
AUDIENCE_LABEL_FOR_GENDER = {
    Gender.MALE.value: CourseAudience.MEN.value,
    Gender.FEMALE.value: CourseAudience.WOMEN.value,
}


class Viewer(BaseModel):
    """The person searching."""
    gender: Optional[str] = None

    model_config = ConfigDict(frozen=True)


class Candidate(BaseModel):
    """A teacher, course or study partner being considered for display."""
    gender: Optional[str] = None
    audiences: frozenset[str] = Field(default_factory=frozenset)

    model_config = ConfigDict(frozen=True)


def normalize_label(label: Optional[str]) -> Optional[str]:
    if label is None:
        return None
    label = label.strip().lower()
    return label or None


def normalize_audiences(audiences: Optional[Iterable[str]]) -> frozenset[str]:
    if not audiences:
        return frozenset()
    return frozenset(n for n in (normalize_label(a) for a in audiences) if n)


def is_visible(viewer: Viewer, candidate: Candidate) -> bool:
    """
    Decides whether a candidate (teacher, course or partner) is shown to a viewer.

    Fail-open when either gender is unknown. Otherwise the candidate is
    visible when it shares the viewer's gender, or when one of its audiences
    is children, an open adult audience, or the label that addresses the
    viewer's own gender ("men" for a male viewer, "women" for a female one).
    """
    viewer_gender = normalize_label(viewer.gender)
    candidate_gender = normalize_label(candidate.gender)
    if viewer_gender is None or candidate_gender is None:
        return True

    if candidate_gender == viewer_gender:
        return True

    audiences = normalize_audiences(candidate.audiences)
    if CHILDREN_LABEL in audiences:
        return True
    if audiences & OPEN_AUDIENCE_LABELS:
        return True

    own_label = AUDIENCE_LABEL_FOR_GENDER.get(viewer_gender)
    return own_label is not None and own_label in audiences


def filter_visible(
    viewer: Viewer,
    items: Iterable[T],
    to_candidate: Callable[[T], Candidate]
) -> list[T]:
    """Keeps the items whose candidate projection is visible to the viewer, preserving order."""
    return [item for item in items if is_visible(viewer, to_candidate(item))]


def audiences_for_viewer(viewer: Viewer, labels: Iterable[str]) -> list[str]:
    """
    The audience labels a viewer may filter by: every label when the gender is
    unknown, otherwise children, open labels and the viewer's own label.
    """
    unique = sorted({n for n in (normalize_label(l) for l in labels) if n})
    viewer_gender = normalize_label(viewer.gender)
    if viewer_gender is None:
        return unique
    allowed = {CHILDREN_LABEL, *OPEN_AUDIENCE_LABELS}
    own_label = AUDIENCE_LABEL_FOR_GENDER.get(viewer_gender)
    if own_label:
        allowed.add(own_label)
    return [label for label in unique if label in allowed]


# --- Projections from stored rows ---

def viewer_from_profile(profile) -> Viewer:
    return Viewer(gender=getattr(profile, 'gender', None))


def candidate_from_teacher(teacher) -> Candidate:
    return Candidate(gender=teacher.gender, audiences=normalize_audiences(teacher.audiences))


def candidate_from_course(course) -> Candidate:
    """A course carries one audience label; the gender is its teacher's."""
    return Candidate(gender=course.teacher.gender, audiences=normalize_audiences([course.audience]))


def candidate_from_partner(student) -> Candidate:
    # Study partners declare no audience, so only the gender rule applies
    return Candidate(gender=student.gender)
