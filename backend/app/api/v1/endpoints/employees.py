from __future__ import annotations

import logging

from fastapi import APIRouter, Depends, HTTPException, Query, Request, status
from fastapi.responses import JSONResponse

from app.core.dependencies import get_current_actor, require_permission
from app.core.permissions import has_permission
from app.models.auth import ActorInfo
from app.models.employee import (
    EmployeeDetail,
    EmployeeImportRequest,
    EmployeeImportResponse,
    EmployeeListResponse,
    EmployeeUpdate,
    PersonRef,
)
from app.services.audit_service import get_ip_address
from app.services.employee_service import (
    DEFAULT_SORT,
    EmployeeImportError,
    EmployeeNotFoundError,
    EmployeePermissionError,
    EmployeeUpdateError,
    employee_service,
)

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/employees", tags=["employees"])


@router.get("", response_model=EmployeeListResponse)
async def list_employees(
    search: str = "",
    status_filter: str = Query("active", alias="status"),
    department: str = "",
    manager_id: str = "",
    sort_by: str = DEFAULT_SORT,
    sort_order: str = Query("asc", pattern=r"^(asc|desc)$"),
    page: int = Query(1, ge=1),
    limit: int = Query(20, ge=1, le=100),
):
    try:
        return await employee_service.list_employees(
            search=search,
            status=status_filter,
            department=department,
            manager_id=manager_id,
            sort_by=sort_by,
            sort_order=sort_order,
            page=page,
            limit=limit,
        )
    except Exception as err:
        logger.exception("Failed to list employees")
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail="Failed to retrieve employees",
        ) from err


@router.get("/departments", response_model=list[str])
async def list_departments():
    try:
        return await employee_service.get_departments()
    except Exception as err:
        logger.exception("Failed to list departments")
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail="Failed to retrieve departments",
        ) from err


@router.get("/managers", response_model=list[PersonRef])
async def list_managers():
    try:
        return await employee_service.get_managers()
    except Exception as err:
        logger.exception("Failed to list managers")
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail="Failed to retrieve managers",
        ) from err


@router.post("/bulk-import", response_model=EmployeeImportResponse)
async def bulk_import(
    body: EmployeeImportRequest,
    request: Request,
    actor: ActorInfo = Depends(require_permission("employee.import")),  # noqa: B008
):
    try:
        created = await employee_service.import_employees(body.employees, actor, get_ip_address(request.headers))
    except EmployeeImportError as err:
        return JSONResponse(status_code=err.status_code, content={"detail": str(err), **err.details})
    except Exception as err:
        logger.exception("Bulk import failed")
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail="Failed to import employees",
        ) from err

    return EmployeeImportResponse(success=True, imported=len(created), employees=created)


@router.get("/{employee_id}", response_model=EmployeeDetail)
async def get_employee(
    employee_id: str,
    actor: ActorInfo = Depends(get_current_actor),  # noqa: B008
):
    try:
        employee = await employee_service.get_employee(
            employee_id, include_salary=has_permission(actor.role, "employee.view.salary")
        )
    except Exception as err:
        logger.exception("Failed to get employee %s", employee_id)
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail="Failed to retrieve employee",
        ) from err

    if not employee:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail=f"Employee with id '{employee_id}' not found",
        )

    return employee


@router.patch("/{employee_id}", response_model=EmployeeDetail)
async def update_employee(
    employee_id: str,
    update: EmployeeUpdate,
    request: Request,
    actor: ActorInfo = Depends(  # noqa: B008
        require_permission("employee.edit.all", "employee.edit.own-department")
    ),
):
    try:
        return await employee_service.update_employee(employee_id, update, actor, get_ip_address(request.headers))
    except EmployeeNotFoundError as err:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail=f"Employee with id '{employee_id}' not found",
        ) from err
    except EmployeePermissionError as err:
        raise HTTPException(status_code=status.HTTP_403_FORBIDDEN, detail=str(err)) from err
    except EmployeeUpdateError as err:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(err)) from err
    except Exception as err:
        logger.exception("Failed to update employee %s", employee_id)
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail="Failed to update employee",
        ) from err


@router.delete("/{employee_id}")
async def delete_employee(
    employee_id: str,
    request: Request,
    actor: ActorInfo = Depends(require_permission("employee.delete")),  # noqa: B008
):
    try:
        await employee_service.terminate_employee(employee_id, actor, get_ip_address(request.headers))
    except EmployeeNotFoundError as err:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail=f"Employee with id '{employee_id}' not found",
        ) from err
    except Exception as err:
        logger.exception("Failed to delete employee %s", employee_id)
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail="Failed to delete employee",
        ) from err

    return {"success": True}
