from datetime import date
from typing import List, Optional

from pydantic import BaseModel

from .models import Role, VacationType


class LoginRequest(BaseModel):
    email: str
    password: str


class ChangePasswordRequest(BaseModel):
    currentPassword: str
    newPassword: str


class ForgotPasswordRequest(BaseModel):
    email: str


class ResetPasswordRequest(BaseModel):
    email: str
    otp: str
    newPassword: str


class VacationRequest(BaseModel):
    startDate: date
    endDate: date
    type: VacationType = VacationType.ANNUAL
    reason: Optional[str] = None


class ReasonRequest(BaseModel):
    reason: Optional[str] = None


class WorkScheduleIn(BaseModel):
    startTime: str
    endTime: str
    lunchStartTime: Optional[str] = None
    lunchEndTime: Optional[str] = None
    workDays: List[int] = [1, 2, 3, 4, 5]
    toleranceMinutes: int = 10


class AllowedLocation(BaseModel):
    name: str
    latitude: float
    longitude: float
    radius: float = 100
    geoBoundary: Optional[str] = None


class EmployeeCreate(BaseModel):
    email: str
    password: str
    name: str
    cpf: Optional[str] = None
    role: Role = Role.EMPLOYEE
    employeeId: str
    department: Optional[str] = None
    position: Optional[str] = None
    hireDate: date
    salary: float = 0.0
    workSchedule: Optional[WorkScheduleIn] = None
    isRemote: bool = False
    allowedLocations: Optional[List[AllowedLocation]] = None
    costCenter: Optional[str] = None
    client: Optional[str] = None


class EmployeeUpdate(BaseModel):
    name: Optional[str] = None
    department: Optional[str] = None
    position: Optional[str] = None
    salary: Optional[float] = None
    workSchedule: Optional[WorkScheduleIn] = None
    isRemote: Optional[bool] = None
    allowedLocations: Optional[List[AllowedLocation]] = None
    costCenter: Optional[str] = None
    client: Optional[str] = None
    isActive: Optional[bool] = None
