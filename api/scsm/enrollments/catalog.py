"""Course catalog and course-selection resolution.

A course selection code from the checkout page resolves to one or more
catalog courses. Combo codes expand to both practice courses; unknown codes
pass through as a single "OTHER" course instead of failing. A blank
selection becomes the generic "other" course.
"""

from dataclasses import dataclass


@dataclass(frozen=True)
class CourseDescriptor:
    """A purchasable course: id, display name and subject code."""

    id: str
    name: str
    subject: str


SOFT_SKILLS = CourseDescriptor(id="fttp", name="Soft Skills Practice", subject="CSS")
LANGUAGE_SKILLS = CourseDescriptor(
    id="dttp", name="Language Skills Practice", subject="CLS"
)
COMM_PERSONALITY = CourseDescriptor(
    id="comm-personality",
    name="Communication & Personality Development",
    subject="PD",
)

OTHER_SUBJECT = "OTHER"
OTHER_COURSE_ID = "other"

# Selection codes that buy both practice courses under one order
COMBO_CODES = frozenset({"combo", "soft-lang-combo"})

CATALOG: dict[str, CourseDescriptor] = {
    course.id: course for course in (SOFT_SKILLS, LANGUAGE_SKILLS, COMM_PERSONALITY)
}

# The two practice courses every legacy paid student holds
PRACTICE_PAIR = (SOFT_SKILLS, LANGUAGE_SKILLS)


def resolve_courses(selection: str) -> list[CourseDescriptor]:
    """Resolve a course selection code into catalog courses.

    Args:
        selection: Code sent by the client (course id or combo code)

    Returns:
        One descriptor per course the order covers, in purchase order
    """
    if selection in COMBO_CODES:
        return list(PRACTICE_PAIR)

    course = CATALOG.get(selection)
    if course is not None:
        return [course]

    course_id = selection or OTHER_COURSE_ID
    return [CourseDescriptor(id=course_id, name=course_id, subject=OTHER_SUBJECT)]


def practice_sibling(course_id: str) -> CourseDescriptor | None:
    """Return the other course of the practice pair, if course_id is one."""
    if course_id == SOFT_SKILLS.id:
        return LANGUAGE_SKILLS
    if course_id == LANGUAGE_SKILLS.id:
        return SOFT_SKILLS
    return None
