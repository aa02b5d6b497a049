import pytest
import httpx
from sqlalchemy.ext.asyncio import AsyncSession

from torah_connect_backend.database import models as db_models
from torah_connect_backend.database.db_enums import CourseAudience, Gender
from torah_connect_backend.services.security import JWTHandler

from tests.database import factories

from pprint import pp as pprint


# Helper to create auth headers
def auth_headers_for_user(user: db_models.Profiles) -> dict:
    """Creates a JWT token for the given user and returns auth headers."""
    token = JWTHandler.create_access_token(subject=user.email)
    return {"Authorization": f"Bearer {token}"}


@pytest.mark.anyio
class TestTeachersAPI:

    async def test_female_viewer_search(
        self,
        db_session: AsyncSession,
        client: httpx.AsyncClient,
        test_female_student_orm: db_models.Profiles
    ):
        factories.TeacherFactory(audiences=[CourseAudience.MEN.value])
        for_children = factories.TeacherFactory(audiences=[CourseAudience.CHILDREN.value])
        await db_session.flush()

        response = await client.get("/teachers/", headers=auth_headers_for_user(test_female_student_orm))
        pprint(response.json())

        assert response.status_code == 200
        assert [t["id"] for t in response.json()] == [str(for_children.id)]

    async def test_audiences(
        self,
        client: httpx.AsyncClient,
        test_female_student_orm: db_models.Profiles,
        test_teacher_orm: db_models.Profiles
    ):
        response = await client.get("/teachers/audiences", headers=auth_headers_for_user(test_female_student_orm))
        assert response.json() == {"audiences": ["children"]}

    async def test_partners(
        self,
        db_session: AsyncSession,
        client: httpx.AsyncClient,
        test_female_student_orm: db_models.Profiles
    ):
        partner = factories.StudentFactory(gender=Gender.FEMALE.value)
        factories.StudentFactory(gender=Gender.MALE.value)
        await db_session.flush()

        response = await client.get("/partners/", headers=auth_headers_for_user(test_female_student_orm))

        assert [p["id"] for p in response.json()] == [str(partner.id)]
        assert "email" not in response.json()[0]


@pytest.mark.anyio
class TestCoursesAPI:

    async def test_approved_teacher_creates_and_deactivates(
        self,
        client: httpx.AsyncClient,
        test_teacher_orm: db_models.Profiles,
        test_student_orm: db_models.Profiles
    ):
        headers = auth_headers_for_user(test_teacher_orm)

        created = await client.post("/courses/", json={
            "title": "Intro to Gemara",
            "subject": "Talmud",
            "audience": "men",
            "price": 4500,
        }, headers=headers)
        pprint(created.json())
        assert created.status_code == 201
        course_id = created.json()["id"]
        assert created.json()["teacher"]["id"] == str(test_teacher_orm.id)

        listed = await client.get("/courses/", headers=auth_headers_for_user(test_student_orm))
        assert [c["id"] for c in listed.json()] == [course_id]

        updated = await client.patch(f"/courses/{course_id}", json={"price": 5000}, headers=headers)
        assert updated.json()["price"] == 5000

        deleted = await client.delete(f"/courses/{course_id}", headers=headers)
        assert deleted.status_code == 204

        listed = await client.get("/courses/", headers=auth_headers_for_user(test_student_orm))
        assert listed.json() == []

    async def test_pending_teacher_cannot_create(
        self,
        client: httpx.AsyncClient,
        test_pending_teacher_orm: db_models.Profiles
    ):
        response = await client.post(
            "/courses/", json={"title": "x", "subject": "talmud"}, headers=auth_headers_for_user(test_pending_teacher_orm)
        )
        assert response.status_code == 403

    async def test_other_teacher_cannot_edit(
        self,
        db_session: AsyncSession,
        client: httpx.AsyncClient,
        test_course_orm: db_models.Courses
    ):
        other_teacher = factories.TeacherFactory()
        await db_session.flush()

        response = await client.patch(
            f"/courses/{test_course_orm.id}", json={"price": 1}, headers=auth_headers_for_user(other_teacher)
        )
        assert response.status_code == 403


@pytest.mark.anyio
class TestDonationsAPI:

    async def test_donation_funds_a_sponsored_enrollment(
        self,
        client: httpx.AsyncClient,
        test_admin_orm: db_models.Profiles,
        test_student_orm: db_models.Profiles,
        test_course_orm: db_models.Courses
    ):
        donor = auth_headers_for_user(test_student_orm)
        created = await client.post("/donations/", json={
            "amount": 10000, "donation_type": "single_course", "courses_sponsored": 1
        }, headers=donor)
        assert created.status_code == 201
        assert created.json()["status"] == "pending"

        completed = await client.post(
            f"/donations/{created.json()['id']}/complete", headers=auth_headers_for_user(test_admin_orm)
        )
        assert completed.json()["status"] == "completed"

        available = await client.get("/donations/sponsored/available", headers=donor)
        assert available.json() == {"available_slots": 1}

        booking = await client.post(f"/trials/{test_course_orm.id}/book", headers=donor)
        assert booking.json()["reason"] == "SPONSORED"
        assert booking.json()["enrollment"]["source"] == "sponsored"
