'''
API endpoints for Recitation (setoran) logs.
'''
from typing import Annotated, Any
from uuid import UUID
from fastapi import APIRouter, Depends, status, Query, Response

from ..database.db_enums import RoleEnum
from ..models import identity as identity_models
from ..models import roster as roster_models
from ..services.security import require_roles, verify_token_and_get_user
from ..services.log_service import RecitationService
from ..services.roster_service import RosterService

teacher_or_admin = require_roles(RoleEnum.ASATIDZ, RoleEnum.ADMIN)


class RecitationsAPI:
    """
    A class to encapsulate endpoints for Recitation logs.
    """
    def __init__(self):
        self.router = APIRouter(
            prefix="/recitations",
            tags=["Recitations"]
        )
        self._register_routes()

    def _register_routes(self):
        """Registers all the API routes for this class."""
        self.router.add_api_route(
            "/",
            self.list_recitations,
            methods=["GET"],
            response_model=list[roster_models.RecitationEnriched])
        self.router.add_api_route(
            "/",
            self.create_recitation,
            methods=["POST"],
            status_code=status.HTTP_201_CREATED,
            response_model=roster_models.RecitationRead)
        self.router.add_api_route(
            "/{recitation_id}",
            self.update_recitation,
            methods=["PATCH"],
            response_model=roster_models.RecitationRead)
        self.router.add_api_route(
            "/{recitation_id}",
            self.delete_recitation,
            methods=["DELETE"],
            status_code=status.HTTP_204_NO_CONTENT)

    async def list_recitations(
        self,
        current_user: Annotated[identity_models.CurrentUser, Depends(verify_token_and_get_user)],
        roster_service: Annotated[RosterService, Depends(RosterService)],
        student_id: Annotated[UUID | None, Query(description="Optional filter for Student ID")] = None
    ) -> list[Any]:
        """
        Recitations, most recent first, with the student and evaluator names resolved.
        """
        return await roster_service.list_recitations_enriched(student_id=student_id)

    async def create_recitation(
        self,
        recitation_data: roster_models.RecitationCreate,
        current_user: Annotated[identity_models.CurrentUser, Depends(teacher_or_admin)],
        recitation_service: Annotated[RecitationService, Depends(RecitationService)]
    ) -> Any:
        """
        Records a recitation. The acting teacher is stamped as the evaluator.
        """
        return await recitation_service.create_recitation(recitation_data, current_user.id)

    async def update_recitation(
        self,
        recitation_id: UUID,
        recitation_data: roster_models.RecitationUpdate,
        current_user: Annotated[identity_models.CurrentUser, Depends(teacher_or_admin)],
        recitation_service: Annotated[RecitationService, Depends(RecitationService)]
    ) -> Any:
        return await recitation_service.update_recitation(recitation_id, recitation_data, current_user.id)

    async def delete_recitation(
        self,
        recitation_id: UUID,
        current_user: Annotated[identity_models.CurrentUser, Depends(teacher_or_admin)],
        recitation_service: Annotated[RecitationService, Depends(RecitationService)]
    ):
        await recitation_service.delete(recitation_id, current_user.id)
        return Response(status_code=status.HTTP_204_NO_CONTENT)

# Instantiate the class and export its router
recitations_api = RecitationsAPI()
router = recitations_api.router
