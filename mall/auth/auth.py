import logging
from datetime import datetime, timedelta, timezone
from typing import Optional

import bcrypt
import jwt
from fastapi import APIRouter, Depends, Request, Response
from sqlmodel import Session, select

from mall.configuration.settings import Configuration
from mall.core.exceptions.app_exception import AppHttpException
from mall.database.connection import get_session
from mall.models.user.user import User
from mall.schemas.auth.auth import AuthCredentials, AuthResponse, SignupRequest, UserRead

configuration = Configuration()

SECRET_KEY = configuration.secret_key
JWT_EXPIRATION_HOURS = configuration.jwt_expiration_hours
AUTH_COOKIE_NAME = "auth_token"

db_session = get_session


def hash_password(password: str) -> str:
    return bcrypt.hashpw(password.encode(), bcrypt.gensalt()).decode()


class AuthRouter(APIRouter):
    def __init__(self):
        super().__init__(prefix="/api/auth")
        self.add_api_route("/signup", self.signup, methods=["POST"], response_model=AuthResponse, status_code=201)
        self.add_api_route("/login", self.login, methods=["POST"], response_model=AuthResponse)
        self.add_api_route("/refresh", self.refresh, methods=["POST"], response_model=AuthResponse)
        self.add_api_route("/logout", self.logout, methods=["POST"], response_model=AuthResponse)
        self.add_api_route("/me", self.me, methods=["GET"], response_model=AuthResponse)

    def _generate_jwt(self, user: User) -> str:
        expiration = datetime.now(timezone.utc) + timedelta(hours=JWT_EXPIRATION_HOURS)
        payload = {"user_id": user.id, "email": user.email, "role": user.role, "exp": expiration}
        return jwt.encode(payload, SECRET_KEY, algorithm="HS256")

    def decode_jwt(self, token: str, verify_exp: bool = True) -> dict:
        try:
            return jwt.decode(token, SECRET_KEY, algorithms=["HS256"], options={"verify_exp": verify_exp})
        except jwt.ExpiredSignatureError:
            raise AppHttpException(status_code=401, detail="Token expired. Please log in again.")
        except jwt.InvalidTokenError:
            raise AppHttpException(status_code=401, detail="Invalid token format.")

    def _set_auth_cookie(self, response: Response, token: str):
        response.set_cookie(
            AUTH_COOKIE_NAME,
            token,
            httponly=True,
            secure=configuration.auth_cookie_secure,
            samesite="lax",
            max_age=JWT_EXPIRATION_HOURS * 60 * 60,
            path="/",
        )

    def extract_token(self, request: Request) -> Optional[str]:
        token = request.cookies.get(AUTH_COOKIE_NAME)
        if token:
            return token

        authorization: str = request.headers.get("Authorization")
        if not authorization:
            return None

        parts = authorization.split()
        if len(parts) != 2 or parts[0].lower() != "bearer":
            return None
        return parts[1]

    def get_current_user(self, request: Request, session: Session = Depends(db_session)) -> User:
        token = self.extract_token(request)
        if not token:
            raise AppHttpException(status_code=401, detail="Access token required")

        payload = self.decode_jwt(token)
        user = session.get(User, payload.get("user_id"))

        if not user:
            raise AppHttpException(status_code=401, detail="Invalid or expired token")
        if not user.is_active:
            raise AppHttpException(status_code=403, detail="Account is inactive. Please contact support.")
        return user

    def signup(self, data: SignupRequest, response: Response, session: Session = Depends(db_session)):
        existing = session.exec(select(User).where(User.email == data.email.lower())).first()
        if existing:
            raise AppHttpException(status_code=409, detail="An account with this email already exists.")

        user = User(
            email=data.email.lower(),
            full_name=data.full_name.strip(),
            phone_number=data.phone_number,
            password_hash=hash_password(data.password),
        )
        session.add(user)
        session.commit()
        session.refresh(user)

        token = self._generate_jwt(user)
        self._set_auth_cookie(response, token)
        logging.info(f"AUTH >>> User {user.id} registered")
        return AuthResponse(message="Account created successfully", user=UserRead.model_validate(user), token=token)

    def login(self, credentials: AuthCredentials, response: Response, session: Session = Depends(db_session)):
        user = session.exec(select(User).where(User.email == credentials.email.lower())).first()

        if not user or not user.password_hash or not bcrypt.checkpw(credentials.password.encode(), user.password_hash.encode()):
            raise AppHttpException(status_code=401, detail="Invalid email or password")

        if not user.is_active:
            raise AppHttpException(status_code=403, detail="Account is inactive. Please contact support.")

        user.last_login = datetime.now(timezone.utc)
        session.add(user)
        session.commit()
        session.refresh(user)

        token = self._generate_jwt(user)
        self._set_auth_cookie(response, token)
        logging.info(f"AUTH >>> User {user.id} logged in")
        return AuthResponse(message="Login successful", user=UserRead.model_validate(user), token=token)

    def refresh(self, request: Request, response: Response, session: Session = Depends(db_session)):
        token = self.extract_token(request)
        if not token:
            raise AppHttpException(status_code=401, detail="Access token required")

        # Expired tokens are accepted here; that is what refreshing is for
        payload = self.decode_jwt(token, verify_exp=False)
        user = session.get(User, payload.get("user_id"))
        if not user or not user.is_active:
            raise AppHttpException(status_code=401, detail="Invalid or expired token")

        exp = payload.get("exp")
        expired = exp is not None and exp <= datetime.now(timezone.utc).timestamp()
        if not expired:
            return AuthResponse(message="Token still valid", user=UserRead.model_validate(user))

        new_token = self._generate_jwt(user)
        self._set_auth_cookie(response, new_token)
        logging.info(f"AUTH >>> Token refreshed for user {user.id}")
        return AuthResponse(message="Token refreshed successfully", user=UserRead.model_validate(user), token=new_token)

    def logout(self, response: Response):
        response.delete_cookie(AUTH_COOKIE_NAME, path="/")
        return AuthResponse(message="Logged out successfully")

    def me(self, request: Request, session: Session = Depends(db_session)):
        user = self.get_current_user(request, session)
        return AuthResponse(user=UserRead.model_validate(user))
