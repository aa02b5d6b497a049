import pytest
from fastapi import HTTPException
from sqlalchemy.ext.asyncio import AsyncSession

from torah_connect_backend.database import models as db_models
from torah_connect_backend.database.db_enums import ApprovalStatus, CourseAudience, Gender
from torah_connect_backend.services.matching_service import MatchingService

from tests.database import factories
from tests.constants import TEST_OTHER_SUBJECT


@pytest.mark.anyio
class TestTeacherSearch:

    async def test_female_viewer_sees_only_compatible_teachers(
        self,
        db_session: AsyncSession,
        matching_service: MatchingService,
        test_female_student_orm: db_models.Profiles
    ):
        # --- ARRANGE ---
        for_men = factories.TeacherFactory(audiences=[CourseAudience.MEN.value])
        for_children = factories.TeacherFactory(audiences=[CourseAudience.CHILDREN.value])
        female_teacher = factories.TeacherFactory(gender=Gender.FEMALE.value, audiences=[CourseAudience.WOMEN.value])
        factories.TeacherFactory(gender=Gender.FEMALE.value, approval_status=ApprovalStatus.PENDING.value)
        await db_session.flush()

        # --- ACT ---
        teachers = await matching_service.list_teachers(test_female_student_orm)

        # --- ASSERT ---
        ids = {t.id for t in teachers}
        assert for_men.id not in ids
        assert ids == {for_children.id, female_teacher.id}

    async def test_filters_narrow_the_result(
        self,
        db_session: AsyncSession,
        matching_service: MatchingService,
        test_student_orm: db_models.Profiles
    ):
        talmud = factories.TeacherFactory(first_name="Shmuel", bio="Gemara shiur")
        halacha = factories.TeacherFactory(subjects=[TEST_OTHER_SUBJECT], languages=["french"])
        await db_session.flush()

        assert [t.id for t in await matching_service.list_teachers(test_student_orm, subject="Halacha")] == [halacha.id]
        assert [t.id for t in await matching_service.list_teachers(test_student_orm, language="french")] == [halacha.id]
        assert [t.id for t in await matching_service.list_teachers(test_student_orm, search="gemara")] == [talmud.id]

    async def test_get_visible_teacher(
        self,
        matching_service: MatchingService,
        test_female_student_orm: db_models.Profiles,
        test_teacher_orm: db_models.Profiles
    ):
        """The fixture teacher also teaches children, so a female viewer may open the profile."""
        teacher = await matching_service.get_teacher(test_teacher_orm.id, test_female_student_orm)
        assert teacher.id == test_teacher_orm.id

    async def test_get_teacher_for_men_as_female_viewer(
        self,
        db_session: AsyncSession,
        matching_service: MatchingService,
        test_female_student_orm: db_models.Profiles
    ):
        teacher = factories.TeacherFactory(audiences=[CourseAudience.MEN.value])
        await db_session.flush()

        with pytest.raises(HTTPException) as e:
            await matching_service.get_teacher(teacher.id, test_female_student_orm)
        assert e.value.status_code == 404

    async def test_audience_labels_for_viewer(
        self,
        db_session: AsyncSession,
        matching_service: MatchingService,
        test_female_student_orm: db_models.Profiles
    ):
        factories.TeacherFactory(audiences=["men", "children"])
        factories.TeacherFactory(gender=Gender.FEMALE.value, audiences=["women", "general"])
        await db_session.flush()

        labels = await matching_service.audience_labels(test_female_student_orm)

        assert labels == ["children", "general", "women"]


@pytest.mark.anyio
class TestCourseSearch:

    async def test_courses_follow_the_same_rule_as_teachers(
        self,
        db_session: AsyncSession,
        matching_service: MatchingService,
        test_female_student_orm: db_models.Profiles,
        test_teacher_orm: db_models.Profiles
    ):
        # --- ARRANGE ---
        men_course = factories.CourseFactory(teacher=test_teacher_orm, audience=CourseAudience.MEN.value)
        kids_course = factories.CourseFactory(teacher=test_teacher_orm, audience=CourseAudience.CHILDREN.value)
        factories.CourseFactory(teacher=test_teacher_orm, is_active=False, audience=CourseAudience.CHILDREN.value)
        factories.CourseFactory(
            teacher=factories.TeacherFactory(approval_status=ApprovalStatus.PENDING.value),
            audience=CourseAudience.GENERAL.value
        )
        await db_session.flush()

        # --- ACT ---
        courses = await matching_service.list_courses(test_female_student_orm)

        # --- ASSERT ---
        assert [c.id for c in courses] == [kids_course.id]
        assert men_course.id not in {c.id for c in courses}

    async def test_trial_only_and_subject_filters(
        self,
        db_session: AsyncSession,
        matching_service: MatchingService,
        test_student_orm: db_models.Profiles,
        test_teacher_orm: db_models.Profiles
    ):
        with_trial = factories.CourseFactory(teacher=test_teacher_orm)
        factories.CourseFactory(teacher=test_teacher_orm, is_trial_available=False)
        other_subject = factories.CourseFactory(teacher=test_teacher_orm, subject=TEST_OTHER_SUBJECT)
        await db_session.flush()

        trial_courses = await matching_service.list_courses(test_student_orm, trial_only=True)
        halacha_courses = await matching_service.list_courses(test_student_orm, subject="HALACHA")

        assert {c.id for c in trial_courses} == {with_trial.id, other_subject.id}
        assert [c.id for c in halacha_courses] == [other_subject.id]


@pytest.mark.anyio
class TestPartnerSearch:

    async def test_partners_are_same_gender_students(
        self,
        db_session: AsyncSession,
        matching_service: MatchingService,
        test_student_orm: db_models.Profiles,
        test_female_student_orm: db_models.Profiles
    ):
        partner = factories.StudentFactory()
        factories.StudentFactory(is_active=False)
        await db_session.flush()

        partners = await matching_service.list_partners(test_student_orm)

        assert [p.id for p in partners] == [partner.id]
