'''
Donations and the sponsored-course slots they fund.
'''
from typing import Annotated, Optional
from uuid import UUID
from fastapi import Depends, HTTPException, status
from sqlalchemy import select, update, func
from sqlalchemy.ext.asyncio import AsyncSession

from ..database.engine import get_db_session
from ..database import models as db_models
from ..database.db_enums import DonationStatus, AdminActionType, UserRole
from ..database.models import utcnow
from ..common.logger import log
from ..models import donations as donation_models
from .user_service import require_admin

# Attempts at claiming a slot before giving up when other bookings race for the same rows
CLAIM_ATTEMPTS = 3


class DonationService:
    def __init__(self, db: Annotated[AsyncSession, Depends(get_db_session)]):
        self.db = db

    async def create_donation(
        self,
        donation_data: donation_models.DonationCreate,
        current_user: db_models.Profiles
    ) -> db_models.Donations:
        log.info(f"User {current_user.id} recording a donation of {donation_data.amount}.")
        if current_user.role == UserRole.ADMIN.value:
            raise HTTPException(
                status_code=status.HTTP_400_BAD_REQUEST,
                detail="Admins cannot record donations for themselves."
            )
        donation = db_models.Donations(
            donor_id=current_user.id,
            amount=donation_data.amount,
            donation_type=donation_data.donation_type.value,
            courses_sponsored=donation_data.courses_sponsored,
            message=donation_data.message,
            status=DonationStatus.PENDING.value,
        )
        self.db.add(donation)
        await self.db.flush()
        return donation

    async def complete_donation(self, donation_id: UUID, current_user: db_models.Profiles) -> db_models.Donations:
        """
        Marks a pending donation completed and creates its unused sponsored slots.
        """
        require_admin(current_user, f"complete donation {donation_id}")
        donation = await self.db.get(db_models.Donations, donation_id)
        if not donation:
            raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Donation not found.")
        if donation.status != DonationStatus.PENDING.value:
            raise HTTPException(
                status_code=status.HTTP_409_CONFLICT,
                detail=f"Donation is already {donation.status}."
            )

        donation.status = DonationStatus.COMPLETED.value
        donation.completed_at = utcnow()
        self.db.add_all([
            db_models.SponsoredCourses(donation_id=donation.id)
            for _ in range(donation.courses_sponsored)
        ])
        self.db.add(db_models.AdminActions(
            admin_id=current_user.id,
            action_type=AdminActionType.DONATION_COMPLETE.value,
            target_user_id=donation.donor_id,
            details={"donation_id": str(donation.id), "courses_sponsored": donation.courses_sponsored}
        ))
        await self.db.flush()
        log.info(f"Admin {current_user.id} completed donation {donation.id} ({donation.courses_sponsored} slots).")
        return donation

    async def list_for_donor(self, current_user: db_models.Profiles) -> list[db_models.Donations]:
        stmt = select(db_models.Donations).filter(
            db_models.Donations.donor_id == current_user.id
        ).order_by(db_models.Donations.created_at.desc())
        result = await self.db.execute(stmt)
        return list(result.scalars().all())

    async def available_slots(self) -> int:
        stmt = select(func.count(db_models.SponsoredCourses.id)).filter(
            db_models.SponsoredCourses.beneficiary_id.is_(None)
        )
        return (await self.db.execute(stmt)).scalar_one()

    async def claim_slot(self, student_id: UUID, course_id: UUID) -> Optional[db_models.SponsoredCourses]:
        """
        Assigns one unused slot to the student. The conditional update only
        succeeds while the slot is still unassigned, so two concurrent claims
        never share a slot. Returns None when no slot could be claimed.
        """
        for _ in range(CLAIM_ATTEMPTS):
            candidate_stmt = select(db_models.SponsoredCourses.id).filter(
                db_models.SponsoredCourses.beneficiary_id.is_(None)
            ).order_by(db_models.SponsoredCourses.created_at).limit(1)
            slot_id = (await self.db.execute(candidate_stmt)).scalar_one_or_none()
            if slot_id is None:
                return None

            claim = update(db_models.SponsoredCourses).where(
                db_models.SponsoredCourses.id == slot_id,
                db_models.SponsoredCourses.beneficiary_id.is_(None)
            ).values(
                beneficiary_id=student_id,
                course_id=course_id,
                used_at=utcnow()
            ).execution_options(synchronize_session=False)
            result = await self.db.execute(claim)
            if result.rowcount == 1:
                slot = await self.db.get(db_models.SponsoredCourses, slot_id, populate_existing=True)
                log.info(f"Sponsored slot {slot_id} claimed by student {student_id} for course {course_id}.")
                return slot
            log.warning(f"Sponsored slot {slot_id} was claimed concurrently; retrying.")
        return None
