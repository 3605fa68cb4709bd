"""
Community help endpoints: volunteer profiles, help requests and the
admin views over both.
"""

from typing import Any, Dict, Optional

from fastapi import APIRouter, BackgroundTasks, Body, Depends, Path, Query, status

from rahaseva_api.app.api.deps import get_store
from rahaseva_api.app.core.errors import service_errors
from rahaseva_api.app.core.security import require_roles, require_user
from rahaseva_api.app.schemas.community import (
    HelpFeedbackCreate,
    HelpRequestCreate,
    HelpStatusUpdate,
    VolunteerRegister,
    VolunteerUpdate,
    VolunteerVerify,
)
from rahaseva_api.app.services.community_service import CommunityService
from rahaseva_api.app.store import DocumentStore

router = APIRouter()


def _dump(document) -> Dict[str, Any]:
    return document.model_dump(mode="json")


@router.post("/volunteers/register", status_code=status.HTTP_201_CREATED)
async def register_volunteer(
    payload: VolunteerRegister,
    current_user: Dict[str, Any] = Depends(require_user),
    store: DocumentStore = Depends(get_store),
) -> Dict[str, Any]:
    with service_errors():
        volunteer = await CommunityService.register_volunteer(store, current_user, payload)
    return {
        "success": True,
        "message": "Successfully registered as a community volunteer",
        "data": {
            "id": volunteer.id,
            "volunteer_id": volunteer.volunteer_id,
            "name": volunteer.name,
            "skills": volunteer.skills,
            "verification": volunteer.verification.model_dump(mode="json"),
        },
    }


@router.get("/volunteers/profile")
async def get_volunteer_profile(
    current_user: Dict[str, Any] = Depends(require_user),
    store: DocumentStore = Depends(get_store),
) -> Dict[str, Any]:
    with service_errors():
        volunteer = await CommunityService.get_volunteer_profile(store, current_user["id"])
    return {"success": True, "data": _dump(volunteer)}


@router.put("/volunteers/profile")
async def update_volunteer_profile(
    update: VolunteerUpdate,
    current_user: Dict[str, Any] = Depends(require_user),
    store: DocumentStore = Depends(get_store),
) -> Dict[str, Any]:
    with service_errors():
        volunteer = await CommunityService.update_volunteer_profile(store, current_user["id"], update)
    return {"success": True, "message": "Volunteer profile updated successfully", "data": _dump(volunteer)}


@router.get("/volunteers/requests")
async def get_volunteer_help_requests(
    current_user: Dict[str, Any] = Depends(require_user),
    store: DocumentStore = Depends(get_store),
) -> Dict[str, Any]:
    """Requests assigned to the calling volunteer and open ones nearby."""
    with service_errors():
        result = await CommunityService.volunteer_help_requests(store, current_user["id"])
    assigned = [_dump(request) for request in result["assigned_requests"]]
    nearby = result["nearby_requests"]
    return {
        "success": True,
        "data": {
            "assigned_requests": {"count": len(assigned), "requests": assigned},
            "nearby_requests": {"count": len(nearby), "requests": nearby},
        },
    }


@router.post("/help-requests", status_code=status.HTTP_201_CREATED)
async def create_help_request(
    payload: HelpRequestCreate,
    background_tasks: BackgroundTasks,
    current_user: Dict[str, Any] = Depends(require_user),
    store: DocumentStore = Depends(get_store),
) -> Dict[str, Any]:
    """Post a help request; volunteer matching continues in the background."""
    with service_errors():
        help_request = await CommunityService.create_help_request(store, current_user, payload)
    background_tasks.add_task(CommunityService.match_volunteer, store, help_request.id)
    return {
        "success": True,
        "message": "Help request created successfully",
        "data": {
            "id": help_request.id,
            "request_id": help_request.request_id,
            "status": help_request.status,
            "status_display": help_request.status_display,
        },
    }


@router.get("/help-requests")
async def get_user_help_requests(
    current_user: Dict[str, Any] = Depends(require_user),
    store: DocumentStore = Depends(get_store),
) -> Dict[str, Any]:
    requests = await CommunityService.user_help_requests(store, current_user["id"])
    return {"success": True, "count": len(requests), "data": [_dump(r) for r in requests]}


@router.get("/help-requests/{request_id}")
async def get_help_request(
    request_id: str = Path(..., description="Store id or public request id"),
    current_user: Dict[str, Any] = Depends(require_user),
    store: DocumentStore = Depends(get_store),
) -> Dict[str, Any]:
    with service_errors():
        help_request = await CommunityService.get_help_request(store, current_user, request_id)
    return {"success": True, "data": _dump(help_request)}


@router.post("/help-requests/{request_id}/accept")
async def accept_help_request(
    request_id: str = Path(...),
    notes: Optional[str] = Body(None, embed=True),
    current_user: Dict[str, Any] = Depends(require_user),
    store: DocumentStore = Depends(get_store),
) -> Dict[str, Any]:
    with service_errors():
        help_request = await CommunityService.accept_help_request(store, current_user, request_id, notes)
    return {
        "success": True,
        "message": "Help request accepted successfully",
        "data": {
            "id": help_request.id,
            "status": help_request.status,
            "status_display": help_request.status_display,
            "schedule": help_request.schedule.model_dump(mode="json"),
        },
    }


@router.put("/help-requests/{request_id}/status")
async def update_help_request_status(
    update: HelpStatusUpdate,
    request_id: str = Path(...),
    current_user: Dict[str, Any] = Depends(require_user),
    store: DocumentStore = Depends(get_store),
) -> Dict[str, Any]:
    with service_errors():
        help_request = await CommunityService.update_help_request_status(store, current_user, request_id, update)
    return {
        "success": True,
        "message": "Help request status updated successfully",
        "data": {
            "id": help_request.id,
            "status": help_request.status,
            "status_display": help_request.status_display,
            "tracking": [entry.model_dump(mode="json") for entry in help_request.tracking],
        },
    }


@router.post("/help-requests/{request_id}/feedback")
async def submit_help_request_feedback(
    feedback: HelpFeedbackCreate,
    request_id: str = Path(...),
    current_user: Dict[str, Any] = Depends(require_user),
    store: DocumentStore = Depends(get_store),
) -> Dict[str, Any]:
    with service_errors():
        help_request = await CommunityService.submit_feedback(store, current_user, request_id, feedback)
    return {
        "success": True,
        "message": "Feedback submitted successfully",
        "data": {"id": help_request.id, "feedback": help_request.feedback.model_dump(mode="json")},
    }


@router.get("/admin/volunteers")
async def admin_list_volunteers(
    verified: Optional[bool] = Query(None),
    current_user: Dict[str, Any] = Depends(require_roles("admin")),
    store: DocumentStore = Depends(get_store),
) -> Dict[str, Any]:
    volunteers = await CommunityService.list_volunteers(store, verified=verified)
    return {"success": True, "count": len(volunteers), "data": [_dump(v) for v in volunteers]}


@router.get("/admin/help-requests")
async def admin_list_help_requests(
    status: Optional[str] = Query(None),
    current_user: Dict[str, Any] = Depends(require_roles("admin")),
    store: DocumentStore = Depends(get_store),
) -> Dict[str, Any]:
    requests = await CommunityService.list_help_requests(store, status=status)
    return {"success": True, "count": len(requests), "data": [_dump(r) for r in requests]}


@router.put("/admin/volunteers/{volunteer_id}/verify")
async def admin_verify_volunteer(
    payload: VolunteerVerify,
    volunteer_id: str = Path(...),
    current_user: Dict[str, Any] = Depends(require_roles("admin")),
    store: DocumentStore = Depends(get_store),
) -> Dict[str, Any]:
    with service_errors():
        volunteer = await CommunityService.verify_volunteer(store, current_user, volunteer_id, payload)
    return {"success": True, "message": "Volunteer verification updated", "data": _dump(volunteer)}
