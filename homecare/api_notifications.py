from __future__ import annotations

from fastapi import APIRouter, Depends, Response, status

from homecare.api_deps import get_current_principal, get_notification_service, require_roles
from homecare.auth_models import Role
from homecare.auth_security import Principal
from homecare.notifications import NotificationService
from homecare.schemas import NotificationIn, NotificationOut

router = APIRouter(prefix="/api/notifications", tags=["Notifications"])


@router.get("", response_model=list[NotificationOut])
def my_notifications(
    service: NotificationService = Depends(get_notification_service),
    principal: Principal = Depends(get_current_principal),
) -> list[NotificationOut]:
    return [NotificationOut.from_entity(n) for n in service.list_for_user(principal.id)]


@router.get("/unread", response_model=list[NotificationOut])
def my_unread_notifications(
    service: NotificationService = Depends(get_notification_service),
    principal: Principal = Depends(get_current_principal),
) -> list[NotificationOut]:
    return [NotificationOut.from_entity(n) for n in service.list_unread_for_user(principal.id)]


@router.get("/unread-count", response_model=int)
def unread_count(
    service: NotificationService = Depends(get_notification_service),
    principal: Principal = Depends(get_current_principal),
) -> int:
    return service.count_unread(principal.id)


@router.put("/mark-all-read", status_code=status.HTTP_204_NO_CONTENT)
def mark_all_read(
    service: NotificationService = Depends(get_notification_service),
    principal: Principal = Depends(get_current_principal),
) -> Response:
    service.mark_all_read(principal.id)
    return Response(status_code=status.HTTP_204_NO_CONTENT)


@router.put("/{notification_id}/mark-read", status_code=status.HTTP_204_NO_CONTENT)
def mark_read(
    notification_id: int,
    service: NotificationService = Depends(get_notification_service),
    principal: Principal = Depends(get_current_principal),
) -> Response:
    service.mark_read(notification_id, principal)
    return Response(status_code=status.HTTP_204_NO_CONTENT)


@router.delete("/{notification_id}", status_code=status.HTTP_204_NO_CONTENT)
def delete_notification(
    notification_id: int,
    service: NotificationService = Depends(get_notification_service),
    principal: Principal = Depends(get_current_principal),
) -> Response:
    service.delete(notification_id, principal)
    return Response(status_code=status.HTTP_204_NO_CONTENT)


@router.post("", response_model=NotificationOut, status_code=status.HTTP_201_CREATED)
def create_notification(
    payload: NotificationIn,
    service: NotificationService = Depends(get_notification_service),
    principal: Principal = Depends(require_roles(Role.EMPLOYEE, Role.ADMIN)),
) -> NotificationOut:
    n = service.create(
        user_id=payload.user_id,
        title=payload.title,
        message=payload.message,
        type=payload.type,
        related_id=payload.related_id,
    )
    return NotificationOut.from_entity(n)
