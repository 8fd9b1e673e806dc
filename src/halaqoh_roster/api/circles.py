'''
API endpoints for managing Circles (halaqoh).
'''
from typing import Annotated, Any
from uuid import UUID
from fastapi import APIRouter, Depends, status, Response

from ..database.db_enums import RoleEnum
from ..models import identity as identity_models
from ..models import roster as roster_models
from ..services.security import require_roles, verify_token_and_get_user
from ..services.circle_service import CircleService
from ..services.roster_service import RosterService

admin_only = require_roles(RoleEnum.ADMIN)


class CirclesAPI:
    """
    A class to encapsulate CRUD endpoints for Circles.
    The listing carries the per-circle statistics.
    """
    def __init__(self):
        self.router = APIRouter(
            prefix="/circles",
            tags=["Circles"]
        )
        self._register_routes()

    def _register_routes(self):
        """Registers all the API routes for this class."""
        self.router.add_api_route(
                "/",
                self.list_circles,
                methods=["GET"],
                response_model=list[roster_models.CircleWithStats])

        self.router.add_api_route(
                "/{circle_id}",
                self.get_circle,
                methods=["GET"],
                response_model=roster_models.CircleRead)

        self.router.add_api_route(
                "/",
                self.create_circle,
                methods=["POST"],
                status_code=status.HTTP_201_CREATED,
                response_model=roster_models.CircleRead)

        self.router.add_api_route(
                "/{circle_id}",
                self.update_circle,
                methods=["PATCH"],
                response_model=roster_models.CircleRead)

        self.router.add_api_route(
                "/{circle_id}",
                self.delete_circle,
                methods=["DELETE"],
                status_code=status.HTTP_204_NO_CONTENT)

    async def list_circles(
        self,
        current_user: Annotated[identity_models.CurrentUser, Depends(verify_token_and_get_user)],
        roster_service: Annotated[RosterService, Depends(RosterService)]
    ) -> list[Any]:
        """
        Every circle with its teacher name and student count, ordered by name.
        """
        return await roster_service.list_circles_with_stats()

    async def get_circle(
        self,
        circle_id: UUID,
        current_user: Annotated[identity_models.CurrentUser, Depends(verify_token_and_get_user)],
        circle_service: Annotated[CircleService, Depends(CircleService)]
    ) -> Any:
        return await circle_service.get_circle(circle_id)

    async def create_circle(
        self,
        circle_data: roster_models.CircleCreate,
        current_user: Annotated[identity_models.CurrentUser, Depends(admin_only)],
        circle_service: Annotated[CircleService, Depends(CircleService)]
    ) -> Any:
        """
        Creates a circle. A teacher_id, when given, must name an active teacher.
        """
        return await circle_service.create_circle(circle_data, current_user.id)

    async def update_circle(
        self,
        circle_id: UUID,
        circle_data: roster_models.CircleUpdate,
        current_user: Annotated[identity_models.CurrentUser, Depends(admin_only)],
        circle_service: Annotated[CircleService, Depends(CircleService)]
    ) -> Any:
        return await circle_service.update_circle(circle_id, circle_data, current_user.id)

    async def delete_circle(
        self,
        circle_id: UUID,
        current_user: Annotated[identity_models.CurrentUser, Depends(admin_only)],
        circle_service: Annotated[CircleService, Depends(CircleService)]
    ):
        """
        Deletes a circle. Its students are kept and left unassigned.
        """
        await circle_service.delete_circle(circle_id, current_user.id)
        return Response(status_code=status.HTTP_204_NO_CONTENT)

# Instantiate the class and export its router
circles_api = CirclesAPI()
router = circles_api.router
