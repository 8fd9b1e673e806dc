'''
API endpoints for managing Students (santri).
'''
from typing import Annotated, Any
from uuid import UUID
from fastapi import APIRouter, Depends, status, Query, Response

from ..database.db_enums import RoleEnum, StudentStatusEnum
from ..models import identity as identity_models
from ..models import roster as roster_models
from ..services.security import require_roles, verify_token_and_get_user
from ..services.circle_service import StudentService
from ..services.roster_service import RosterService

admin_only = require_roles(RoleEnum.ADMIN)


class StudentsAPI:
    """
    A class to encapsulate CRUD endpoints for Students,
    plus the per-student recitation and attendance summary.
    """
    def __init__(self):
        self.router = APIRouter(
            prefix="/students",
            tags=["Students"]
        )
        self._register_routes()

    def _register_routes(self):
        """Registers all the API routes for this class."""
        self.router.add_api_route(
            "/",
            self.list_students,
            methods=["GET"],
            response_model=list[roster_models.StudentRead])
        self.router.add_api_route(
            "/{student_id}",
            self.get_student,
            methods=["GET"],
            response_model=roster_models.StudentRead)
        self.router.add_api_route(
            "/{student_id}/summary",
            self.get_student_summary,
            methods=["GET"],
            response_model=roster_models.StudentSummary)
        self.router.add_api_route(
            "/",
            self.create_student,
            methods=["POST"],
            status_code=status.HTTP_201_CREATED,
            response_model=roster_models.StudentRead)
        self.router.add_api_route(
            "/{student_id}",
            self.update_student,
            methods=["PATCH"],
            response_model=roster_models.StudentRead)
        self.router.add_api_route(
            "/{student_id}",
            self.delete_student,
            methods=["DELETE"],
            status_code=status.HTTP_204_NO_CONTENT)

    async def list_students(
        self,
        current_user: Annotated[identity_models.CurrentUser, Depends(verify_token_and_get_user)],
        student_service: Annotated[StudentService, Depends(StudentService)],
        status_filter: Annotated[StudentStatusEnum | None, Query(alias="status", description="Optional filter on student status")] = None,
        circle_id: Annotated[UUID | None, Query(description="Optional filter for Circle ID")] = None
    ) -> list[Any]:
        """
        Students ordered by name. Pass status=Active for the pickers on the
        recitation and attendance forms.
        """
        return await student_service.get_all(status=status_filter, circle_id=circle_id)

    async def get_student(
        self,
        student_id: UUID,
        current_user: Annotated[identity_models.CurrentUser, Depends(verify_token_and_get_user)],
        student_service: Annotated[StudentService, Depends(StudentService)]
    ) -> Any:
        return await student_service.get_student(student_id)

    async def get_student_summary(
        self,
        student_id: UUID,
        current_user: Annotated[identity_models.CurrentUser, Depends(verify_token_and_get_user)],
        roster_service: Annotated[RosterService, Depends(RosterService)]
    ) -> Any:
        return await roster_service.get_student_summary(student_id)

    async def create_student(
        self,
        student_data: roster_models.StudentCreate,
        current_user: Annotated[identity_models.CurrentUser, Depends(admin_only)],
        student_service: Annotated[StudentService, Depends(StudentService)]
    ) -> Any:
        return await student_service.create_student(student_data, current_user.id)

    async def update_student(
        self,
        student_id: UUID,
        student_data: roster_models.StudentUpdate,
        current_user: Annotated[identity_models.CurrentUser, Depends(admin_only)],
        student_service: Annotated[StudentService, Depends(StudentService)]
    ) -> Any:
        return await student_service.update_student(student_id, student_data, current_user.id)

    async def delete_student(
        self,
        student_id: UUID,
        current_user: Annotated[identity_models.CurrentUser, Depends(admin_only)],
        student_service: Annotated[StudentService, Depends(StudentService)]
    ):
        """
        Deletes a student together with their recitation and attendance history.
        """
        await student_service.delete_student(student_id, current_user.id)
        return Response(status_code=status.HTTP_204_NO_CONTENT)

# Instantiate the class and export its router
students_api = StudentsAPI()
router = students_api.router
