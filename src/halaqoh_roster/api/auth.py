'''
API endpoints for Authentication: login and the current session.
'''
from typing import Annotated
from fastapi import APIRouter, Depends, HTTPException, status
from fastapi.security import OAuth2PasswordRequestForm

from ..services.auth_service import LoginService
from ..services.security import verify_token_and_get_user
from ..models import identity as identity_models
from ..common.logger import log

class AuthRoutes:
    """
    A class to encapsulate all authentication endpoints.
    There is no public signup: teacher accounts are provisioned by an Admin.
    """
    def __init__(self):
        self.router = APIRouter(
            prefix="/auth",
            tags=["Authentication"]
        )
        self._register_routes()

    def _register_routes(self):
        """Registers all the API routes for this class."""
        self.router.add_api_route(
            "/login",
            self.login_for_access_token,
            methods=["POST"],
            response_model=identity_models.Token,
            summary="Login for Access Token"
        )
        self.router.add_api_route(
            "/me",
            self.read_current_user,
            methods=["GET"],
            response_model=identity_models.CurrentUser,
            summary="Current Session"
        )

    async def login_for_access_token(
        self,
        form_data: Annotated[OAuth2PasswordRequestForm, Depends()],
        login_service: Annotated[LoginService, Depends(LoginService)]
    ):
        """
        Authenticates a user and returns an access token.
        Uses OAuth2PasswordRequestForm (username = email, password).
        """
        try:
            token = await login_service.login_user(form_data)
            return token
        except HTTPException as e:
            raise e
        except Exception as e:
            log.error(f"Unexpected error during login: {e}", exc_info=True)
            raise HTTPException(
                status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
                detail="An internal server error occurred during login.",
            )

    async def read_current_user(
        self,
        current_user: Annotated[identity_models.CurrentUser, Depends(verify_token_and_get_user)]
    ):
        """The acting user and the roles they hold."""
        return current_user

# Create an instance of the class and export its router
auth_routes = AuthRoutes()
router = auth_routes.router
