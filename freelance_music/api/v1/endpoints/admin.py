# freelance_music/api/v1/endpoints/admin.py
from typing import Optional

from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session

from freelance_music.db.session import get_db
from freelance_music.schemas.payment import RevenueSummary
from freelance_music.schemas.report import (
    AdminDashboard,
    ReferralReport,
    RepeatLessonsReport,
)
from freelance_music.services import payment_service, report_service

router = APIRouter(prefix="/admin", tags=["admin"])


@router.get("/dashboard", response_model=AdminDashboard)
def admin_dashboard(year: Optional[int] = None, db: Session = Depends(get_db)):
    return report_service.get_admin_dashboard_data(db, year=year)


@router.get("/revenue", response_model=RevenueSummary)
def platform_revenue(db: Session = Depends(get_db)):
    return payment_service.get_platform_revenue(db)


@router.get("/referrals", response_model=ReferralReport)
def referral_report(db: Session = Depends(get_db)):
    return report_service.get_referral_report(db)


@router.get("/repeat-lessons", response_model=RepeatLessonsReport)
def repeat_lessons_report(db: Session = Depends(get_db)):
    return report_service.get_repeat_lessons_report(db)
