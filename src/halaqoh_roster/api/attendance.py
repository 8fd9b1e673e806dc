'''
API endpoints for Attendance (absensi) logs.
'''
from typing import Annotated, Any
from uuid import UUID
from fastapi import APIRouter, Depends, status, Query, Response

from ..database.db_enums import RoleEnum
from ..models import identity as identity_models
from ..models import roster as roster_models
from ..services.security import require_roles, verify_token_and_get_user
from ..services.log_service import AttendanceService
from ..services.roster_service import RosterService

teacher_or_admin = require_roles(RoleEnum.ASATIDZ, RoleEnum.ADMIN)


class AttendanceAPI:
    """
    A class to encapsulate endpoints for Attendance logs.
    """
    def __init__(self):
        self.router = APIRouter(
            prefix="/attendance",
            tags=["Attendance"]
        )
        self._register_routes()

    def _register_routes(self):
        """Registers all the API routes for this class."""
        self.router.add_api_route(
            "/",
            self.list_attendance,
            methods=["GET"],
            response_model=list[roster_models.AttendanceEnriched])
        self.router.add_api_route(
            "/",
            self.create_attendance,
            methods=["POST"],
            status_code=status.HTTP_201_CREATED,
            response_model=roster_models.AttendanceRead)
        self.router.add_api_route(
            "/{attendance_id}",
            self.update_attendance,
            methods=["PATCH"],
            response_model=roster_models.AttendanceRead)
        self.router.add_api_route(
            "/{attendance_id}",
            self.delete_attendance,
            methods=["DELETE"],
            status_code=status.HTTP_204_NO_CONTENT)

    async def list_attendance(
        self,
        current_user: Annotated[identity_models.CurrentUser, Depends(verify_token_and_get_user)],
        roster_service: Annotated[RosterService, Depends(RosterService)],
        student_id: Annotated[UUID | None, Query(description="Optional filter for Student ID")] = None
    ) -> list[Any]:
        """
        Attendance rows, most recent first, with the student name resolved.
        """
        return await roster_service.list_attendance_enriched(student_id=student_id)

    async def create_attendance(
        self,
        attendance_data: roster_models.AttendanceCreate,
        current_user: Annotated[identity_models.CurrentUser, Depends(teacher_or_admin)],
        attendance_service: Annotated[AttendanceService, Depends(AttendanceService)]
    ) -> Any:
        return await attendance_service.create_attendance(attendance_data, current_user.id)

    async def update_attendance(
        self,
        attendance_id: UUID,
        attendance_data: roster_models.AttendanceUpdate,
        current_user: Annotated[identity_models.CurrentUser, Depends(teacher_or_admin)],
        attendance_service: Annotated[AttendanceService, Depends(AttendanceService)]
    ) -> Any:
        return await attendance_service.update_attendance(attendance_id, attendance_data, current_user.id)

    async def delete_attendance(
        self,
        attendance_id: UUID,
        current_user: Annotated[identity_models.CurrentUser, Depends(teacher_or_admin)],
        attendance_service: Annotated[AttendanceService, Depends(AttendanceService)]
    ):
        await attendance_service.delete(attendance_id, current_user.id)
        return Response(status_code=status.HTTP_204_NO_CONTENT)

# Instantiate the class and export its router
attendance_api = AttendanceAPI()
router = attendance_api.router
