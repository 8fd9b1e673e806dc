'''

'''
from typing import Annotated
from fastapi import Depends, HTTPException, status
from fastapi.security import OAuth2PasswordRequestForm

from .security import JWTHandler
from .identity_service import IdentityService
from ..database.db_enums import RoleEnum
from ..common.config import settings
from ..common.logger import log
from ..models import identity as identity_models

class LoginService:
    """
    Service for handling login and authentication.
    Depends on the IdentityService to fetch credentials.
    """
    def __init__(
        self,
        identity_service: Annotated[IdentityService, Depends(IdentityService)]
    ):
        self.identity_service = identity_service

    async def login_user(self, form_data: OAuth2PasswordRequestForm) -> identity_models.Token:
        log.info(f"Attempting login for user: {form_data.username}")

        identity = await self.identity_service.authenticate(form_data.username, form_data.password)
        if not identity:
            log.warning(f"Login failed for user: {form_data.username} - Incorrect email or password")
            raise HTTPException(
                status_code=status.HTTP_401_UNAUTHORIZED,
                detail="Incorrect email or password",
                headers={"WWW-Authenticate": "Bearer"},
            )

        # A deactivated teacher keeps the identity but may no longer sign in.
        if await self.identity_service.is_deactivated(identity.id):
            log.warning(f"Login failed for user: {form_data.username} - Profile is inactive.")
            raise HTTPException(
                status_code=status.HTTP_400_BAD_REQUEST,
                detail="Inactive user."
            )

        access_token = JWTHandler.create_access_token(subject=identity.email)
        log.info(f"Login successful for user: {form_data.username}")

        return identity_models.Token(access_token=access_token, token_type="bearer")


async def ensure_bootstrap_admin(identity_service: IdentityService):
    """
    Creates the first operator account from settings, if configured.
    Safe to run on every startup.
    """
    email = settings.BOOTSTRAP_ADMIN_EMAIL
    password = settings.BOOTSTRAP_ADMIN_PASSWORD
    if not email or not password:
        return

    identity = await identity_service.get_identity_by_email(email)
    if identity is None:
        created = await identity_service.create_identity(email, password, {"bootstrap": True})
        identity_id = created.id
    else:
        identity_id = identity.id

    await identity_service.ensure_role(identity_id, RoleEnum.ADMIN)
    await identity_service.db.commit()
    log.info(f"Bootstrap admin {email} is in place.")
