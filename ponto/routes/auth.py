import logging
import re
from datetime import datetime, timedelta

import pyotp
from fastapi import APIRouter, Depends, HTTPException, status
from sqlalchemy.orm import Session

from .. import config
from ..database import get_db
from ..models import User
from ..schemas import ChangePasswordRequest, ForgotPasswordRequest, LoginRequest, ResetPasswordRequest
from ..serializers import user_to_dict
from ..utils.auth import (
    create_access_token,
    get_current_user,
    get_password_hash,
    send_otp_email,
    verify_password,
)

logger = logging.getLogger(__name__)

router = APIRouter()

# Strong Password Rules
PASSWORD_REGEX = r"^(?=.*[a-z])(?=.*[A-Z])(?=.*\d)(?=.*[@#$%^&+=!]).{6,}$"

# ------------------------------------------
# LOGIN
# ------------------------------------------
@router.post("/login")
async def login(payload: LoginRequest, db: Session = Depends(get_db)):
    user = db.query(User).filter(User.email == payload.email).first()
    if not user or not user.is_active or not verify_password(payload.password, user.hashed_password):
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Invalid email or password.",
            headers={"WWW-Authenticate": "Bearer"},
        )

    access_token = create_access_token({"sub": str(user.id), "role": user.role})
    logger.info(f"User {user.id} logged in")
    return {
        "success": True,
        "data": {"user": user_to_dict(user), "token": access_token, "isFirstLogin": user.is_first_login},
        "message": "Login successful",
    }

# ------------------------------------------
# CURRENT USER
# ------------------------------------------
@router.get("/me")
async def get_profile(current_user: User = Depends(get_current_user)):
    return {"success": True, "data": user_to_dict(current_user)}

@router.put("/change-password")
async def change_password(
    payload: ChangePasswordRequest,
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db)
):
    if not verify_password(payload.currentPassword, current_user.hashed_password):
        raise HTTPException(status_code=400, detail="Current password is incorrect.")

    if not re.match(PASSWORD_REGEX, payload.newPassword):
        raise HTTPException(status_code=400, detail="Password must meet security requirements.")

    current_user.hashed_password = get_password_hash(payload.newPassword)
    current_user.is_first_login = False
    db.commit()
    return {"success": True, "message": "Password changed successfully."}

# ------------------------------------------
# FORGOT PASSWORD (Step 1: Send OTP)
# ------------------------------------------
@router.post("/forgot-password")
async def forgot_password(payload: ForgotPasswordRequest, db: Session = Depends(get_db)):
    """Sends an OTP to the user for password reset."""
    user = db.query(User).filter(User.email == payload.email).first()
    if not user:
        raise HTTPException(status_code=404, detail="User not found.")

    secret = pyotp.random_base32()
    otp = pyotp.TOTP(secret, interval=config.OTP_INTERVAL_SECONDS).now()

    user.otp_secret = secret
    user.otp_expires = datetime.utcnow() + timedelta(seconds=config.OTP_INTERVAL_SECONDS)
    db.commit()

    send_otp_email(user.email, otp)
    return {"success": True, "message": "OTP sent to email for password reset."}

# ------------------------------------------
# RESET PASSWORD (Step 2: Verify OTP and set password)
# ------------------------------------------
@router.post("/reset-password")
async def reset_password(payload: ResetPasswordRequest, db: Session = Depends(get_db)):
    """Resets the user password after OTP verification."""
    user = db.query(User).filter(User.email == payload.email).first()
    if not user or not user.otp_secret:
        raise HTTPException(status_code=400, detail="Invalid request.")

    if user.otp_expires < datetime.utcnow():
        raise HTTPException(status_code=400, detail="OTP has expired. Request again.")

    totp = pyotp.TOTP(user.otp_secret, interval=config.OTP_INTERVAL_SECONDS)
    if not totp.verify(payload.otp, valid_window=1):
        raise HTTPException(status_code=400, detail="Invalid OTP.")

    if not re.match(PASSWORD_REGEX, payload.newPassword):
        raise HTTPException(status_code=400, detail="Password must meet security requirements.")

    user.hashed_password = get_password_hash(payload.newPassword)
    user.otp_secret = None
    user.otp_expires = None
    db.commit()

    return {"success": True, "message": "Password reset successful. You can now log in."}
