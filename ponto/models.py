from enum import Enum

from sqlalchemy import Boolean, Column, Date, DateTime, Float, ForeignKey, Integer, JSON, String, Text, UniqueConstraint
from sqlalchemy.orm import relationship
from sqlalchemy.sql import func

from .database import Base


class Role(str, Enum):
    ADMIN = "ADMIN"
    HR = "HR"
    EMPLOYEE = "EMPLOYEE"


class TimeRecordType(str, Enum):
    ENTRY = "ENTRY"
    LUNCH_START = "LUNCH_START"
    LUNCH_END = "LUNCH_END"
    EXIT = "EXIT"
    BREAK_START = "BREAK_START"
    BREAK_END = "BREAK_END"
    ABSENCE_JUSTIFIED = "ABSENCE_JUSTIFIED"


class VacationType(str, Enum):
    ANNUAL = "ANNUAL"
    SICK = "SICK"
    MATERNITY = "MATERNITY"
    PATERNITY = "PATERNITY"
    EMERGENCY = "EMERGENCY"


class MedicalCertificateType(str, Enum):
    MEDICAL = "MEDICAL"
    DENTAL = "DENTAL"
    PREVENTIVE = "PREVENTIVE"
    ACCIDENT = "ACCIDENT"
    COVID = "COVID"
    MATERNITY = "MATERNITY"
    PATERNITY = "PATERNITY"
    OTHER = "OTHER"


class RequestStatus(str, Enum):
    """Lifecycle shared by vacation requests and medical certificates."""
    PENDING = "PENDING"
    APPROVED = "APPROVED"
    REJECTED = "REJECTED"
    CANCELLED = "CANCELLED"


def _record_date(context):
    return context.get_current_parameters()["timestamp"].date()


class User(Base):
    __tablename__ = "users"

    id = Column(Integer, primary_key=True, index=True, autoincrement=True)
    email = Column(String(100), unique=True, index=True, nullable=False)
    hashed_password = Column(String(255), nullable=False)
    name = Column(String(100))
    cpf = Column(String(14), unique=True, nullable=True)
    role = Column(String(20), default=Role.EMPLOYEE.value)
    is_active = Column(Boolean, default=True)
    is_first_login = Column(Boolean, default=True)
    otp_secret = Column(String(64), nullable=True)
    otp_expires = Column(DateTime, nullable=True)
    created_at = Column(DateTime, server_default=func.now())
    updated_at = Column(DateTime, onupdate=func.now())

    employee = relationship("Employee", back_populates="user", uselist=False)


class Employee(Base):
    __tablename__ = "employees"

    id = Column(Integer, primary_key=True, index=True, autoincrement=True)
    user_id = Column(Integer, ForeignKey("users.id"), unique=True, nullable=False)
    employee_id = Column(String(50), unique=True, index=True, nullable=False)  # matricula
    department = Column(String(100))
    position = Column(String(100))
    hire_date = Column(Date, nullable=False)
    salary = Column(Float, default=0.0)
    # {startTime, endTime, lunchStartTime, lunchEndTime, workDays, toleranceMinutes}
    work_schedule = Column(JSON, nullable=True)
    is_remote = Column(Boolean, default=False)
    # [{name, latitude, longitude, radius, geoBoundary?}]
    allowed_locations = Column(JSON, nullable=True)
    cost_center = Column(String(100), nullable=True)
    client = Column(String(100), nullable=True)
    created_at = Column(DateTime, server_default=func.now())

    user = relationship("User", back_populates="employee")
    time_records = relationship("TimeRecord", back_populates="employee")


class TimeRecord(Base):
    __tablename__ = "time_records"
    # One punch of each type per user and day
    __table_args__ = (UniqueConstraint("user_id", "type", "record_date", name="uq_time_record_per_day"),)

    id = Column(Integer, primary_key=True, index=True, autoincrement=True)
    user_id = Column(Integer, ForeignKey("users.id"), index=True, nullable=False)
    employee_id = Column(Integer, ForeignKey("employees.id"), nullable=False)
    type = Column(String(30), nullable=False)
    timestamp = Column(DateTime, index=True, nullable=False)
    record_date = Column(Date, nullable=False, default=_record_date)
    latitude = Column(Float, nullable=True)
    longitude = Column(Float, nullable=True)
    photo_url = Column(Text, nullable=True)
    observation = Column(Text, nullable=True)
    is_valid = Column(Boolean, default=True)
    reason = Column(Text, nullable=True)
    approved_by = Column(Integer, ForeignKey("users.id"), nullable=True)
    approved_at = Column(DateTime, nullable=True)
    created_at = Column(DateTime, server_default=func.now())

    employee = relationship("Employee", back_populates="time_records")


class Vacation(Base):
    __tablename__ = "vacations"

    id = Column(Integer, primary_key=True, index=True, autoincrement=True)
    user_id = Column(Integer, ForeignKey("users.id"), index=True, nullable=False)
    employee_id = Column(Integer, ForeignKey("employees.id"), nullable=False)
    start_date = Column(Date, nullable=False)
    end_date = Column(Date, nullable=False)
    days = Column(Integer, nullable=False)
    type = Column(String(20), default=VacationType.ANNUAL.value)
    status = Column(String(20), default=RequestStatus.PENDING.value)
    reason = Column(Text, nullable=True)
    rejection_reason = Column(Text, nullable=True)
    approved_by = Column(Integer, ForeignKey("users.id"), nullable=True)
    approved_at = Column(DateTime, nullable=True)
    created_at = Column(DateTime, server_default=func.now())

    employee = relationship("Employee")


class MedicalCertificate(Base):
    __tablename__ = "medical_certificates"

    id = Column(Integer, primary_key=True, index=True, autoincrement=True)
    user_id = Column(Integer, ForeignKey("users.id"), index=True, nullable=False)
    employee_id = Column(Integer, ForeignKey("employees.id"), nullable=False)
    type = Column(String(20), nullable=False)
    start_date = Column(Date, nullable=False)
    end_date = Column(Date, nullable=False)
    days = Column(Integer, nullable=False)
    description = Column(Text, nullable=True)
    file_name = Column(String(255), nullable=True)
    file_url = Column(Text, nullable=True)
    status = Column(String(20), default=RequestStatus.PENDING.value)
    rejection_reason = Column(Text, nullable=True)
    approved_by = Column(Integer, ForeignKey("users.id"), nullable=True)
    approved_at = Column(DateTime, nullable=True)
    submitted_at = Column(DateTime, server_default=func.now())

    employee = relationship("Employee")
