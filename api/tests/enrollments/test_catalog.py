"""Tests for course catalog resolution."""

import pytest

from scsm.enrollments.catalog import (
    COMM_PERSONALITY,
    LANGUAGE_SKILLS,
    OTHER_COURSE_ID,
    OTHER_SUBJECT,
    SOFT_SKILLS,
    practice_sibling,
    resolve_courses,
)


class TestResolveCourses:
    """Tests for resolve_courses."""

    @pytest.mark.parametrize("code", ["combo", "soft-lang-combo"])
    def test_combo_codes_expand_to_practice_pair(self, code: str) -> None:
        """Combo codes should buy both practice courses, soft skills first."""
        courses = resolve_courses(code)
        assert [c.id for c in courses] == ["fttp", "dttp"]
        assert [c.subject for c in courses] == ["CSS", "CLS"]

    @pytest.mark.parametrize(
        "code,expected",
        [
            ("fttp", SOFT_SKILLS),
            ("dttp", LANGUAGE_SKILLS),
            ("comm-personality", COMM_PERSONALITY),
        ],
    )
    def test_catalog_courses(self, code, expected) -> None:
        """Known course ids should resolve to their single course."""
        assert resolve_courses(code) == [expected]

    def test_comm_personality_details(self) -> None:
        """Personality course should carry its display name and PD subject."""
        (course,) = resolve_courses("comm-personality")
        assert course.name == "Communication & Personality Development"
        assert course.subject == "PD"

    def test_unknown_code_passes_through(self) -> None:
        """Unknown codes should become one course with the OTHER subject."""
        (course,) = resolve_courses("mock-interview")
        assert course.id == "mock-interview"
        assert course.name == "mock-interview"
        assert course.subject == OTHER_SUBJECT

    def test_blank_code_becomes_generic_course(self) -> None:
        """A missing selection should still order one OTHER course."""
        (course,) = resolve_courses("")
        assert course.id == OTHER_COURSE_ID
        assert course.subject == OTHER_SUBJECT


class TestPracticeSibling:
    """Tests for practice_sibling."""

    def test_siblings(self) -> None:
        assert practice_sibling("fttp") == LANGUAGE_SKILLS
        assert practice_sibling("dttp") == SOFT_SKILLS

    def test_non_practice_course_has_no_sibling(self) -> None:
        assert practice_sibling("comm-personality") is None
        assert practice_sibling("anything") is None
