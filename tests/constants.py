from decimal import Decimal

TEST_DATABASE_URL = "sqlite+aiosqlite:///:memory:"

TEST_PASSWORD_ADMIN = "admin-password"
TEST_PASSWORD_TEACHER = "teacher-password"
TEST_PASSWORD_STUDENT = "student-password"

TEST_SUBJECT = "talmud"
TEST_OTHER_SUBJECT = "halacha"

TEST_HOURLY_RATE = 2000 # cents
TEST_TEACHER_PERCENTAGE = Decimal("0.70")
TEST_ADMIN_PERCENTAGE = Decimal("0.30")
TEST_MONTH = "2026-03"
