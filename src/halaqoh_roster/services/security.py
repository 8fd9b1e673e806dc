'''

'''
from datetime import datetime, timedelta, timezone
from typing import Optional, Annotated
from jose import JWTError, jwt
from fastapi import Depends, HTTPException, status
from fastapi.security import OAuth2PasswordBearer

from ..common.config import settings
from ..common.logger import log
from ..database.db_enums import RoleEnum
from ..models.identity import CurrentUser, TokenPayload
from .identity_service import IdentityService

# --- JWT Handling ---
class JWTHandler:
    @staticmethod
    def create_access_token(
        subject: str,
        expires_delta: Optional[timedelta] = None
    ) -> str:
        if expires_delta is None:
            expires_delta = timedelta(minutes=settings.ACCESS_TOKEN_EXPIRE_MINUTES)

        expire = datetime.now(timezone.utc) + expires_delta
        to_encode = {"sub": str(subject), "exp": expire}
        encoded_jwt = jwt.encode(
            to_encode, settings.SECRET_KEY, algorithm=settings.ALGORITHM
        )
        return encoded_jwt

    @staticmethod
    def decode_token(token: str) -> TokenPayload | None:
        try:
            payload = jwt.decode(
                token, settings.SECRET_KEY, algorithms=[settings.ALGORITHM]
            )
            return TokenPayload(**payload)
        except (JWTError, ValueError) as e: # Catch Pydantic validation errors too
            log.warning(f"JWT decode/validation error: {e}")
            return None

# --- JWT Verification Dependency Function ---
oauth2_scheme = OAuth2PasswordBearer(tokenUrl="/auth/login")

async def verify_token_and_get_user(
    token: Annotated[str, Depends(oauth2_scheme)],
    identity_service: Annotated[IdentityService, Depends(IdentityService)]
    ) -> CurrentUser:
    """
    The current session: verifies the bearer token and resolves the
    identity together with its role grants.
    """
    credentials_exception = HTTPException(
        status_code=status.HTTP_401_UNAUTHORIZED,
        detail="Could not validate credentials",
        headers={"WWW-Authenticate": "Bearer"},
    )

    token_data = JWTHandler.decode_token(token)
    if not token_data or not token_data.sub:
        log.warning("JWT decode failed or invalid token structure.")
        raise credentials_exception

    identity = await identity_service.get_identity_by_email(token_data.sub)
    if identity is None:
        log.warning(f"Identity '{token_data.sub}' not found during token verification.")
        raise credentials_exception

    if await identity_service.is_deactivated(identity.id):
        log.warning(f"Identity '{token_data.sub}' belongs to a deactivated profile.")
        raise credentials_exception

    roles = await identity_service.get_roles(identity.id)
    log.info(f"JWT verified successfully for {identity.email} (Roles: {[r.value for r in roles]})")
    return CurrentUser(id=identity.id, email=identity.email, roles=roles)


def require_roles(*roles: RoleEnum):
    """
    Builds a dependency that admits the caller only when they hold
    at least one of the given roles.
    """
    async def _check(
        current_user: Annotated[CurrentUser, Depends(verify_token_and_get_user)]
    ) -> CurrentUser:
        if not current_user.has_any_role(*roles):
            log.warning(f"Unauthorized action by {current_user.id}. Required one of: {[r.value for r in roles]}")
            raise HTTPException(
                status_code=status.HTTP_403_FORBIDDEN,
                detail="You do not have permission to perform this action."
            )
        return current_user
    return _check
