import logging
from datetime import datetime, time, timedelta
from typing import Optional

from fastapi import APIRouter, Depends, File, Form, HTTPException, UploadFile, status
from sqlalchemy.orm import Session

from ..database import get_db
from ..models import Employee, MedicalCertificate, MedicalCertificateType, RequestStatus, TimeRecord, TimeRecordType, User
from ..schemas import ReasonRequest
from ..serializers import certificate_to_dict
from ..utils.auth import STAFF_ROLES, get_current_employee, get_current_user, role_required
from ..utils.bank_hours import NOTE_MEDICAL_CERTIFICATE
from ..utils.clock import day_bounds, local_now, parse_date_param
from ..utils.storage import save_upload

logger = logging.getLogger(__name__)

router = APIRouter()

JUSTIFIED_ABSENCE_TIME = time(8, 0)


def _get_certificate(db: Session, certificate_id: int) -> MedicalCertificate:
    certificate = db.query(MedicalCertificate).filter(MedicalCertificate.id == certificate_id).first()
    if not certificate:
        raise HTTPException(status_code=404, detail="Medical certificate not found.")
    return certificate


def _justify_absences(db: Session, certificate: MedicalCertificate, approver_id: int) -> int:
    """Create one ABSENCE_JUSTIFIED record per covered day that lacks one."""
    created = 0
    day = certificate.start_date
    while day <= certificate.end_date:
        start, end = day_bounds(day)
        exists = db.query(TimeRecord).filter(
            TimeRecord.user_id == certificate.user_id,
            TimeRecord.type == TimeRecordType.ABSENCE_JUSTIFIED.value,
            TimeRecord.timestamp >= start,
            TimeRecord.timestamp <= end
        ).first()
        if not exists:
            db.add(TimeRecord(
                user_id=certificate.user_id,
                employee_id=certificate.employee_id,
                type=TimeRecordType.ABSENCE_JUSTIFIED.value,
                timestamp=datetime.combine(day, JUSTIFIED_ABSENCE_TIME),
                observation=f"{NOTE_MEDICAL_CERTIFICATE} #{certificate.id}",
                is_valid=True,
                approved_by=approver_id,
                approved_at=local_now(),
            ))
            created += 1
        day += timedelta(days=1)
    return created


# ------------------------------------------
# EMPLOYEE
# ------------------------------------------
@router.post("", status_code=status.HTTP_201_CREATED)
async def submit_certificate(
    type: str = Form(...),
    startDate: str = Form(...),
    endDate: str = Form(...),
    description: Optional[str] = Form(None),
    file: Optional[UploadFile] = File(None),
    current_user: User = Depends(get_current_user),
    employee: Employee = Depends(get_current_employee),
    db: Session = Depends(get_db)
):
    if type not in [t.value for t in MedicalCertificateType]:
        raise HTTPException(status_code=400, detail="Invalid certificate type.")
    try:
        start = parse_date_param(startDate)
        end = parse_date_param(endDate)
    except ValueError:
        raise HTTPException(status_code=400, detail="Invalid date format.")
    if start > end:
        raise HTTPException(status_code=400, detail="Start date must be before end date.")

    file_name = file_url = None
    if file is not None and file.filename:
        file_name = file.filename
        file_url = save_upload(file, "certificates", f"user{current_user.id}")

    certificate = MedicalCertificate(
        user_id=current_user.id,
        employee_id=employee.id,
        type=type,
        start_date=start,
        end_date=end,
        days=(end - start).days + 1,
        description=description,
        file_name=file_name,
        file_url=file_url,
        status=RequestStatus.PENDING.value,
    )
    db.add(certificate)
    db.commit()
    db.refresh(certificate)
    logger.info(f"User {current_user.id} submitted medical certificate {certificate.id}")

    return {"success": True, "data": certificate_to_dict(certificate), "message": "Medical certificate submitted"}


@router.get("/my")
async def get_my_certificates(
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db)
):
    certificates = db.query(MedicalCertificate).filter(
        MedicalCertificate.user_id == current_user.id
    ).order_by(MedicalCertificate.start_date.desc()).all()
    return {"success": True, "data": [certificate_to_dict(c) for c in certificates]}


@router.delete("/{certificate_id}")
async def cancel_certificate(
    certificate_id: int,
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db)
):
    certificate = _get_certificate(db, certificate_id)
    if certificate.user_id != current_user.id:
        raise HTTPException(status_code=403, detail="You can only cancel your own certificates.")
    if certificate.status != RequestStatus.PENDING.value:
        raise HTTPException(status_code=400, detail="Only pending certificates can be cancelled.")

    certificate.status = RequestStatus.CANCELLED.value
    db.commit()
    return {"success": True, "data": certificate_to_dict(certificate), "message": "Medical certificate cancelled"}


# ------------------------------------------
# HR / ADMIN
# ------------------------------------------
@router.get("", dependencies=[Depends(role_required(STAFF_ROLES))])
async def get_all_certificates(
    status: Optional[str] = None,
    userId: Optional[int] = None,
    db: Session = Depends(get_db)
):
    query = db.query(MedicalCertificate)
    if status:
        query = query.filter(MedicalCertificate.status == status)
    if userId is not None:
        query = query.filter(MedicalCertificate.user_id == userId)
    certificates = query.order_by(MedicalCertificate.submitted_at.desc(), MedicalCertificate.id.desc()).all()
    return {"success": True, "data": [certificate_to_dict(c) for c in certificates]}


@router.put("/{certificate_id}/approve")
async def approve_certificate(
    certificate_id: int,
    current_user: User = Depends(role_required(STAFF_ROLES)),
    db: Session = Depends(get_db)
):
    certificate = _get_certificate(db, certificate_id)
    if certificate.status != RequestStatus.PENDING.value:
        raise HTTPException(status_code=400, detail="Only pending certificates can be approved.")

    certificate.status = RequestStatus.APPROVED.value
    certificate.approved_by = current_user.id
    certificate.approved_at = local_now()
    created = _justify_absences(db, certificate, current_user.id)
    db.commit()
    logger.info(f"Medical certificate {certificate_id} approved by user {current_user.id}, {created} absences justified")

    return {"success": True, "data": certificate_to_dict(certificate), "message": "Medical certificate approved"}


@router.put("/{certificate_id}/reject")
async def reject_certificate(
    certificate_id: int,
    payload: ReasonRequest,
    current_user: User = Depends(role_required(STAFF_ROLES)),
    db: Session = Depends(get_db)
):
    if not payload.reason:
        raise HTTPException(status_code=400, detail="A rejection reason is required.")

    certificate = _get_certificate(db, certificate_id)
    if certificate.status != RequestStatus.PENDING.value:
        raise HTTPException(status_code=400, detail="Only pending certificates can be rejected.")

    certificate.status = RequestStatus.REJECTED.value
    certificate.rejection_reason = payload.reason
    certificate.approved_by = current_user.id
    certificate.approved_at = local_now()
    db.commit()
    logger.info(f"Medical certificate {certificate_id} rejected by user {current_user.id}")

    return {"success": True, "data": certificate_to_dict(certificate), "message": "Medical certificate rejected"}
