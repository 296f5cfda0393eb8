import pyotp

from ponto import config
from ponto.utils.auth import verify_password

PASSWORD = "Secret@123"


def test_login_returns_token_and_user(client, employee):
    response = client.post("/api/auth/login", json={"email": employee.user.email, "password": PASSWORD})

    assert response.status_code == 200
    body = response.json()
    assert body["success"] is True
    assert body["data"]["token"]
    assert body["data"]["isFirstLogin"] is True
    assert body["data"]["user"]["employee"]["employeeId"] == employee.employee_id


def test_login_with_wrong_password(client, employee):
    response = client.post("/api/auth/login", json={"email": employee.user.email, "password": "nope"})
    assert response.status_code == 401


def test_inactive_user_cannot_log_in(client, db, employee):
    employee.user.is_active = False
    db.commit()

    response = client.post("/api/auth/login", json={"email": employee.user.email, "password": PASSWORD})
    assert response.status_code == 401


def test_me_requires_token(client):
    assert client.get("/api/auth/me").status_code == 401
    assert client.get("/api/auth/me", headers={"Authorization": "Bearer garbage"}).status_code == 401


def test_me(client, employee, auth_headers):
    response = client.get("/api/auth/me", headers=auth_headers(employee))

    assert response.status_code == 200
    assert response.json()["data"]["email"] == employee.user.email


def test_change_password(client, db, employee, auth_headers):
    headers = auth_headers(employee)
    weak = client.put("/api/auth/change-password", headers=headers,
                      json={"currentPassword": PASSWORD, "newPassword": "weak"})
    assert weak.status_code == 400

    response = client.put("/api/auth/change-password", headers=headers,
                          json={"currentPassword": PASSWORD, "newPassword": "Better@456"})
    assert response.status_code == 200

    db.refresh(employee.user)
    assert verify_password("Better@456", employee.user.hashed_password)
    assert employee.user.is_first_login is False


def test_password_reset_with_otp(client, db, employee, monkeypatch):
    sent = {}
    monkeypatch.setattr("ponto.routes.auth.send_otp_email", lambda email, otp: sent.update(email=email, otp=otp))

    response = client.post("/api/auth/forgot-password", json={"email": employee.user.email})
    assert response.status_code == 200
    assert sent["email"] == employee.user.email

    db.refresh(employee.user)
    assert pyotp.TOTP(employee.user.otp_secret, interval=config.OTP_INTERVAL_SECONDS).verify(sent["otp"])

    response = client.post("/api/auth/reset-password", json={
        "email": employee.user.email, "otp": sent["otp"], "newPassword": "Reset@789",
    })
    assert response.status_code == 200

    db.refresh(employee.user)
    assert employee.user.otp_secret is None
    assert verify_password("Reset@789", employee.user.hashed_password)


def test_reset_with_wrong_otp(client, employee, monkeypatch):
    monkeypatch.setattr("ponto.routes.auth.send_otp_email", lambda email, otp: None)
    client.post("/api/auth/forgot-password", json={"email": employee.user.email})

    response = client.post("/api/auth/reset-password", json={
        "email": employee.user.email, "otp": "not-a-code", "newPassword": "Reset@789",
    })
    assert response.status_code == 400


def test_forgot_password_unknown_email(client):
    response = client.post("/api/auth/forgot-password", json={"email": "nobody@example.com"})
    assert response.status_code == 404
