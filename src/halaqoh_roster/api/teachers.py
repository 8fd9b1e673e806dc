'''
API endpoints for provisioning and managing Teacher (Asatidz) accounts.
'''
from typing import Annotated, Any
from uuid import UUID
from fastapi import APIRouter, Depends, status, Response

from ..database.db_enums import RoleEnum
from ..models import identity as identity_models
from ..models import teacher as teacher_models
from ..services.security import require_roles, verify_token_and_get_user
from ..services.provisioning_service import ProvisioningService
from ..services.roster_service import RosterService

admin_only = require_roles(RoleEnum.ADMIN)


class TeachersAPI:
    """
    A class to encapsulate the teacher lifecycle endpoints.
    Every write is restricted to Admins; the listing is open to any
    authenticated user.
    """
    def __init__(self):
        self.router = APIRouter(
            prefix="/teachers",
            tags=["Teachers"]
        )
        self._register_routes()

    def _register_routes(self):
        """Registers all the API routes for this class."""
        self.router.add_api_route(
            "/",
            self.list_teachers,
            methods=["GET"],
            response_model=list[teacher_models.TeacherWithStats])
        self.router.add_api_route(
            "/",
            self.provision_teacher,
            methods=["POST"],
            status_code=status.HTTP_201_CREATED,
            response_model=teacher_models.TeacherRead)
        self.router.add_api_route(
            "/{teacher_id}/provisioning",
            self.complete_provisioning,
            methods=["POST"],
            response_model=teacher_models.TeacherRead)
        self.router.add_api_route(
            "/{teacher_id}",
            self.update_teacher,
            methods=["PATCH"],
            response_model=teacher_models.TeacherRead)
        self.router.add_api_route(
            "/{teacher_id}",
            self.deactivate_teacher,
            methods=["DELETE"],
            status_code=status.HTTP_204_NO_CONTENT)

    async def list_teachers(
        self,
        current_user: Annotated[identity_models.CurrentUser, Depends(verify_token_and_get_user)],
        roster_service: Annotated[RosterService, Depends(RosterService)]
    ) -> list[Any]:
        """
        Active teachers ordered by full name, each with the number of
        circles assigned to them.
        """
        return await roster_service.list_teachers_with_stats()

    async def provision_teacher(
        self,
        teacher_data: teacher_models.TeacherCreate,
        current_user: Annotated[identity_models.CurrentUser, Depends(admin_only)],
        provisioning_service: Annotated[ProvisioningService, Depends(ProvisioningService)]
    ) -> Any:
        """
        Creates the identity, grants the Asatidz role and writes the profile.
        A 503 carrying identity_id means the account exists but needs repair.
        """
        return await provisioning_service.provision_teacher(teacher_data, current_user.id)

    async def complete_provisioning(
        self,
        teacher_id: UUID,
        teacher_data: teacher_models.TeacherRepair,
        current_user: Annotated[identity_models.CurrentUser, Depends(admin_only)],
        provisioning_service: Annotated[ProvisioningService, Depends(ProvisioningService)]
    ) -> Any:
        """
        Re-runs the role grant and profile steps for an existing identity.
        """
        return await provisioning_service.complete_provisioning(teacher_id, teacher_data, current_user.id)

    async def update_teacher(
        self,
        teacher_id: UUID,
        teacher_data: teacher_models.TeacherUpdate,
        current_user: Annotated[identity_models.CurrentUser, Depends(admin_only)],
        provisioning_service: Annotated[ProvisioningService, Depends(ProvisioningService)]
    ) -> Any:
        return await provisioning_service.update_teacher(teacher_id, teacher_data, current_user.id)

    async def deactivate_teacher(
        self,
        teacher_id: UUID,
        current_user: Annotated[identity_models.CurrentUser, Depends(admin_only)],
        provisioning_service: Annotated[ProvisioningService, Depends(ProvisioningService)]
    ):
        """
        Revokes the role and marks the profile inactive. Repeating it is harmless.
        """
        await provisioning_service.deactivate_teacher(teacher_id, current_user.id)
        return Response(status_code=status.HTTP_204_NO_CONTENT)

# Instantiate the class and export its router
teachers_api = TeachersAPI()
router = teachers_api.router
