"""camelCase dictionaries returned by the API."""


def _iso(value):
    return value.isoformat() if value is not None else None


def user_to_dict(user):
    return {
        "id": user.id,
        "email": user.email,
        "name": user.name,
        "cpf": user.cpf,
        "role": user.role,
        "isActive": user.is_active,
        "isFirstLogin": user.is_first_login,
        "employee": employee_to_dict(user.employee) if user.employee else None,
    }


def employee_to_dict(employee):
    return {
        "id": employee.id,
        "userId": employee.user_id,
        "employeeId": employee.employee_id,
        "name": employee.user.name if employee.user else None,
        "department": employee.department,
        "position": employee.position,
        "hireDate": _iso(employee.hire_date),
        "salary": employee.salary,
        "workSchedule": employee.work_schedule,
        "isRemote": employee.is_remote,
        "allowedLocations": employee.allowed_locations or [],
        "costCenter": employee.cost_center,
        "client": employee.client,
    }


def time_record_to_dict(record):
    return {
        "id": record.id,
        "userId": record.user_id,
        "employeeId": record.employee_id,
        "type": record.type,
        "timestamp": _iso(record.timestamp),
        "latitude": record.latitude,
        "longitude": record.longitude,
        "photoUrl": record.photo_url,
        "observation": record.observation,
        "isValid": record.is_valid,
        "reason": record.reason,
        "approvedBy": record.approved_by,
        "approvedAt": _iso(record.approved_at),
        "createdAt": _iso(record.created_at),
    }


def vacation_to_dict(vacation):
    employee = vacation.employee
    return {
        "id": vacation.id,
        "userId": vacation.user_id,
        "employeeId": vacation.employee_id,
        "employeeName": employee.user.name if employee and employee.user else None,
        "department": employee.department if employee else None,
        "startDate": _iso(vacation.start_date),
        "endDate": _iso(vacation.end_date),
        "days": vacation.days,
        "type": vacation.type,
        "status": vacation.status,
        "reason": vacation.reason,
        "rejectionReason": vacation.rejection_reason,
        "approvedBy": vacation.approved_by,
        "approvedAt": _iso(vacation.approved_at),
        "createdAt": _iso(vacation.created_at),
    }


def certificate_to_dict(certificate):
    employee = certificate.employee
    return {
        "id": certificate.id,
        "userId": certificate.user_id,
        "employeeId": certificate.employee_id,
        "employeeName": employee.user.name if employee and employee.user else None,
        "type": certificate.type,
        "startDate": _iso(certificate.start_date),
        "endDate": _iso(certificate.end_date),
        "days": certificate.days,
        "description": certificate.description,
        "fileName": certificate.file_name,
        "fileUrl": certificate.file_url,
        "status": certificate.status,
        "rejectionReason": certificate.rejection_reason,
        "approvedBy": certificate.approved_by,
        "approvedAt": _iso(certificate.approved_at),
        "submittedAt": _iso(certificate.submitted_at),
    }
