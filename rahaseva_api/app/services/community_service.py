"""
Business logic for community help.

Users post help requests; volunteers register a profile with their
skills and service area, see nearby open requests and accept them.
After a request is created, ``match_volunteer`` runs as a background
task: it marks the request as searching and assigns the nearest
active, verified volunteer with the matching skill within
``MATCH_RADIUS_KM``.

Status changes go through ``HELP_REQUEST_STATUS`` and every change is
appended to the request's tracking log.
"""

import logging
from datetime import datetime, timezone
from typing import Any, Dict, List, Optional

from rahaseva_api.app.models import CommunityHelpRequest, CommunityVolunteer, User
from rahaseva_api.app.models.booking import GeoLocation
from rahaseva_api.app.models.community import (
    HelpCommunication,
    HelpSchedule,
    ServiceOffered,
    distance_km,
)
from rahaseva_api.app.models.transitions import HELP_REQUEST_STATUS
from rahaseva_api.app.schemas.community import (
    HelpFeedbackCreate,
    HelpRequestCreate,
    HelpStatusUpdate,
    VolunteerRegister,
    VolunteerUpdate,
    VolunteerVerify,
)
from rahaseva_api.app.store import DocumentStore
from rahaseva_api.app.store.seed import DEFAULT_COORDINATES

logger = logging.getLogger(__name__)

MATCH_RADIUS_KM = 10
MATCH_CANDIDATES = 5
NEARBY_REQUEST_LIMIT = 10
OPEN_STATUSES = ("pending", "searching")


def _now() -> datetime:
    return datetime.now(timezone.utc)


def _newest_first(items: list) -> list:
    return sorted(items, key=lambda doc: doc.created_at or datetime.min.replace(tzinfo=timezone.utc), reverse=True)


def _coordinates(value: Optional[List[float]]) -> List[float]:
    if value and len(value) == 2:
        return [float(coord) for coord in value]
    return list(DEFAULT_COORDINATES)


class CommunityService:
    """Service for volunteers and community help requests."""

    # Volunteers ---------------------------------------------------------

    @classmethod
    async def volunteer_for_user(cls, store: DocumentStore, user_id: str) -> Optional[CommunityVolunteer]:
        return await CommunityVolunteer.find_one(store, user=user_id)

    @classmethod
    async def get_volunteer_profile(cls, store: DocumentStore, user_id: str) -> CommunityVolunteer:
        volunteer = await cls.volunteer_for_user(store, user_id)
        if volunteer is None:
            raise LookupError("Volunteer profile not found")
        return volunteer

    @classmethod
    async def register_volunteer(
        cls, store: DocumentStore, current_user: Dict[str, Any], payload: VolunteerRegister
    ) -> CommunityVolunteer:
        """Create the caller's volunteer profile.

        Plain users are promoted to the ``helper`` role.  A user can hold
        only one volunteer profile.
        """
        contact, location = payload.contact, payload.location
        if not (payload.name and payload.skills and contact and contact.phone and location and location.address):
            raise ValueError("Missing required fields")
        if await cls.volunteer_for_user(store, current_user["id"]):
            raise ValueError("You are already registered as a volunteer")

        volunteer = CommunityVolunteer.model_validate(
            {
                "user": current_user["id"],
                "name": payload.name,
                "skills": payload.skills,
                "organization": payload.organization,
                "is_ngo": payload.is_ngo,
                "contact": {
                    "phone": contact.phone,
                    "email": contact.email or current_user.get("email") or "",
                    "whatsapp": contact.whatsapp or "",
                },
                "availability": (payload.availability.model_dump() if payload.availability else {"frequency": "weekly"}),
                "location": {
                    "address": location.address,
                    "city": location.city,
                    "state": location.state,
                    "coordinates": _coordinates(location.coordinates),
                    "service_radius": location.service_radius or 10,
                },
                "bio": payload.bio,
                "experience": payload.experience,
                "services_offered": [
                    s.model_dump() for s in payload.services_offered
                ] if payload.services_offered else [ServiceOffered(service=skill).model_dump() for skill in payload.skills],
            }
        )
        await volunteer.save(store)

        user = await User.get(store, current_user["id"])
        if user is not None and user.role == "user":
            user.role = "helper"
            await user.save(store)
        logger.info("User %s registered as volunteer %s", current_user["id"], volunteer.volunteer_id)
        return volunteer

    @classmethod
    async def update_volunteer_profile(
        cls, store: DocumentStore, user_id: str, update: VolunteerUpdate
    ) -> CommunityVolunteer:
        volunteer = await cls.get_volunteer_profile(store, user_id)
        data = volunteer.to_document()

        if update.name:
            data["name"] = update.name
        if update.skills:
            data["skills"] = update.skills
        for key in ("organization", "is_ngo", "bio", "experience", "is_active"):
            value = getattr(update, key)
            if value is not None:
                data[key] = value
        if update.contact:
            data["contact"].update(update.contact.model_dump(exclude_none=True))
        if update.availability:
            data["availability"] = update.availability.model_dump()
        if update.location:
            changes = update.location.model_dump(exclude_none=True)
            if "coordinates" in changes:
                changes["coordinates"] = _coordinates(changes["coordinates"])
            data["location"].update({k: v for k, v in changes.items() if v != ""})
        if update.services_offered:
            data["services_offered"] = [s.model_dump() for s in update.services_offered]
        data["last_active"] = _now()

        volunteer = CommunityVolunteer.from_document(data)
        await volunteer.save(store)
        return volunteer

    @classmethod
    async def list_volunteers(cls, store: DocumentStore, verified: Optional[bool] = None) -> List[CommunityVolunteer]:
        query = {} if verified is None else {"verification.is_verified": verified}
        return _newest_first(await CommunityVolunteer.find(store, **query))

    @classmethod
    async def verify_volunteer(
        cls, store: DocumentStore, admin: Dict[str, Any], volunteer_id: str, payload: VolunteerVerify
    ) -> CommunityVolunteer:
        volunteer = await CommunityVolunteer.get(store, volunteer_id)
        if volunteer is None:
            volunteer = await CommunityVolunteer.find_one(store, volunteer_id=volunteer_id)
        if volunteer is None:
            raise LookupError("Volunteer not found")
        data = volunteer.to_document()
        data["verification"].update(
            {
                "is_verified": payload.is_verified,
                "verified_by": admin["id"] if payload.is_verified else None,
                "verified_at": _now() if payload.is_verified else None,
            }
        )
        if payload.id_proof_type is not None:
            data["verification"]["id_proof_type"] = payload.id_proof_type
        if payload.id_proof_verified is not None:
            data["verification"]["id_proof_verified"] = payload.id_proof_verified
        volunteer = CommunityVolunteer.from_document(data)
        await volunteer.save(store)
        logger.info("Volunteer %s verification set to %s by %s", volunteer.id, payload.is_verified, admin["id"])
        return volunteer

    # Help requests ------------------------------------------------------

    @classmethod
    async def resolve_request(cls, store: DocumentStore, request_id: str) -> CommunityHelpRequest:
        help_request = await CommunityHelpRequest.get(store, request_id)
        if help_request is None:
            help_request = await CommunityHelpRequest.find_one(store, request_id=request_id)
        if help_request is None:
            raise LookupError("Help request not found")
        return help_request

    @classmethod
    async def actor_for(
        cls, store: DocumentStore, help_request: CommunityHelpRequest, current_user: Dict[str, Any]
    ) -> Optional[str]:
        """Role the caller plays on ``help_request`` or ``None`` for outsiders."""
        if help_request.user == current_user["id"]:
            return "user"
        if help_request.volunteer:
            volunteer = await cls.volunteer_for_user(store, current_user["id"])
            if volunteer is not None and volunteer.id == help_request.volunteer:
                return "volunteer"
        if current_user.get("role") == "admin":
            return "admin"
        return None

    @classmethod
    async def create_help_request(
        cls, store: DocumentStore, current_user: Dict[str, Any], payload: HelpRequestCreate
    ) -> CommunityHelpRequest:
        if not (
            payload.help_type
            and payload.description
            and payload.location
            and payload.schedule
            and payload.schedule.requested_date
        ):
            raise ValueError("Missing required fields")

        help_request = CommunityHelpRequest(
            user=current_user["id"],
            help_type=payload.help_type,
            description=payload.description,
            location=GeoLocation(
                address=payload.location.address or "Address not provided",
                coordinates=_coordinates(payload.location.coordinates),
            ),
            schedule=HelpSchedule(
                requested_date=payload.schedule.requested_date,
                requested_time=payload.schedule.requested_time or "10:00",
            ),
            urgency=payload.urgency,
            is_on_site=payload.is_on_site,
            is_public=payload.is_public,
            communication=payload.communication or HelpCommunication(),
        )
        help_request.track("pending", "user", "Help request created")
        await help_request.save(store)
        logger.info("Help request %s created by %s", help_request.request_id, current_user["id"])
        return help_request

    @classmethod
    async def find_nearby_volunteers(
        cls, store: DocumentStore, help_request: CommunityHelpRequest, radius_km: float = MATCH_RADIUS_KM
    ) -> List[CommunityVolunteer]:
        candidates = await CommunityVolunteer.find(store, **{"verification.is_verified": True})
        nearby = []
        for volunteer in candidates:
            if not volunteer.is_active or volunteer.user == help_request.user:
                continue
            if help_request.help_type not in volunteer.skills:
                continue
            distance = volunteer.distance_to(help_request.location.coordinates)
            if distance is not None and distance <= radius_km:
                nearby.append((distance, volunteer))
        nearby.sort(key=lambda pair: pair[0])
        return [volunteer for _, volunteer in nearby[:MATCH_CANDIDATES]]

    @classmethod
    async def match_volunteer(cls, store: DocumentStore, request_id: str) -> Optional[CommunityVolunteer]:
        """Search for and assign the nearest suitable volunteer.

        Runs after the creating request has been answered.  Failures are
        logged and leave the request open for manual acceptance.
        """
        try:
            help_request = await CommunityHelpRequest.get(store, request_id)
            if help_request is None or help_request.status != "pending":
                return None
            HELP_REQUEST_STATUS.check(help_request.status, "searching", "admin")
            help_request.status = "searching"
            help_request.track("searching", "admin", "Searching for nearby volunteers")
            await help_request.save(store)

            volunteers = await cls.find_nearby_volunteers(store, help_request)
            logger.info("Found %s nearby volunteers for help request %s", len(volunteers), help_request.request_id)
            if not volunteers:
                return None

            nearest = volunteers[0]
            await cls._assign(store, help_request, nearest, f"Accepted by volunteer {nearest.name}")
            logger.info("Help request %s assigned to volunteer %s", help_request.request_id, nearest.id)
            return nearest
        except Exception:
            logger.exception("Volunteer matching failed for help request %s", request_id)
            return None

    @classmethod
    async def _assign(
        cls,
        store: DocumentStore,
        help_request: CommunityHelpRequest,
        volunteer: CommunityVolunteer,
        notes: str,
    ) -> None:
        HELP_REQUEST_STATUS.check(help_request.status, "accepted", "volunteer")
        now = _now()
        help_request.volunteer = volunteer.id
        help_request.status = "accepted"
        help_request.schedule.confirmed_date = now
        help_request.schedule.confirmed_time = now.strftime("%H:%M")
        help_request.track("accepted", "volunteer", notes)
        await help_request.save(store)

        volunteer.stats.total_help_requests += 1
        volunteer.last_active = now
        await volunteer.save(store)

    @classmethod
    async def user_help_requests(cls, store: DocumentStore, user_id: str) -> List[CommunityHelpRequest]:
        return _newest_first(await CommunityHelpRequest.find(store, user=user_id))

    @classmethod
    async def volunteer_help_requests(cls, store: DocumentStore, user_id: str) -> Dict[str, Any]:
        """Requests assigned to the caller plus open public ones in their area."""
        volunteer = await cls.get_volunteer_profile(store, user_id)
        assigned = _newest_first(await CommunityHelpRequest.find(store, volunteer=volunteer.id))

        nearby = []
        for help_request in await CommunityHelpRequest.find(store):
            if not help_request.is_public or help_request.status not in OPEN_STATUSES or help_request.volunteer:
                continue
            if help_request.help_type not in volunteer.skills:
                continue
            distance = volunteer.distance_to(help_request.location.coordinates)
            if distance is not None and distance <= volunteer.location.service_radius:
                nearby.append((distance, help_request))
        nearby.sort(key=lambda pair: pair[0])

        return {
            "assigned_requests": assigned,
            "nearby_requests": [
                dict(request.model_dump(mode="json"), distance_km=round(distance, 2))
                for distance, request in nearby[:NEARBY_REQUEST_LIMIT]
            ],
        }

    @classmethod
    async def list_help_requests(cls, store: DocumentStore, status: Optional[str] = None) -> List[CommunityHelpRequest]:
        query = {"status": status} if status else {}
        return _newest_first(await CommunityHelpRequest.find(store, **query))

    @classmethod
    async def get_help_request(
        cls, store: DocumentStore, current_user: Dict[str, Any], request_id: str
    ) -> CommunityHelpRequest:
        help_request = await cls.resolve_request(store, request_id)
        if await cls.actor_for(store, help_request, current_user) is None:
            raise PermissionError("Not authorized to view this help request")
        return help_request

    @classmethod
    async def accept_help_request(
        cls, store: DocumentStore, current_user: Dict[str, Any], request_id: str, notes: Optional[str] = None
    ) -> CommunityHelpRequest:
        volunteer = await cls.get_volunteer_profile(store, current_user["id"])
        help_request = await cls.resolve_request(store, request_id)
        if help_request.status not in OPEN_STATUSES:
            raise ValueError(f"Cannot accept request in {help_request.status} status")
        if help_request.volunteer:
            raise ValueError("This request has already been accepted by another volunteer")
        if help_request.help_type not in volunteer.skills:
            raise ValueError("You do not have the required skill for this help request")
        await cls._assign(store, help_request, volunteer, notes or f"Accepted by volunteer {volunteer.name}")
        return help_request

    @classmethod
    async def update_help_request_status(
        cls, store: DocumentStore, current_user: Dict[str, Any], request_id: str, update: HelpStatusUpdate
    ) -> CommunityHelpRequest:
        if not update.status:
            raise ValueError("Status is required")
        help_request = await cls.resolve_request(store, request_id)
        actor = await cls.actor_for(store, help_request, current_user)
        if actor is None:
            raise PermissionError("Not authorized to update this help request")
        HELP_REQUEST_STATUS.check(help_request.status, update.status, actor)

        previous = help_request.status
        help_request.status = update.status
        help_request.track(update.status, actor, update.notes or f"Status updated from {previous} to {update.status}")

        if update.status == "completed":
            help_request.schedule.completed_at = _now()
            if help_request.volunteer:
                volunteer = await CommunityVolunteer.get(store, help_request.volunteer)
                if volunteer is not None:
                    volunteer.stats.completed_requests += 1
                    volunteer.stats.people_helped += 1
                    volunteer.stats.hours_donated += 1
                    await volunteer.save(store)

        await help_request.save(store)
        logger.info("Help request %s moved %s -> %s by %s", help_request.request_id, previous, update.status, actor)
        return help_request

    @classmethod
    async def submit_feedback(
        cls, store: DocumentStore, current_user: Dict[str, Any], request_id: str, feedback: HelpFeedbackCreate
    ) -> CommunityHelpRequest:
        if feedback.rating is None or not 1 <= feedback.rating <= 5:
            raise ValueError("Valid rating between 1 and 5 is required")
        help_request = await cls.resolve_request(store, request_id)
        actor = await cls.actor_for(store, help_request, current_user)
        if actor is None:
            raise PermissionError("Not authorized to submit feedback for this help request")
        if help_request.status != "completed":
            raise ValueError("Can only submit feedback for completed help requests")

        previous_rating = help_request.feedback.user_rating
        if actor == "user":
            help_request.feedback.user_rating = feedback.rating
            help_request.feedback.user_review = feedback.review or ""
        else:
            help_request.feedback.volunteer_rating = feedback.rating
            help_request.feedback.volunteer_review = feedback.review or ""
            if feedback.hours_spent:
                help_request.help_details.hours_spent = feedback.hours_spent
            if feedback.materials_provided:
                help_request.help_details.materials_provided = feedback.materials_provided
            if feedback.additional_people_helped:
                help_request.help_details.additional_people_helped = feedback.additional_people_helped
        help_request.feedback.review_date = _now()
        await help_request.save(store)

        if actor == "user" and help_request.volunteer:
            volunteer = await CommunityVolunteer.get(store, help_request.volunteer)
            if volunteer is not None:
                volunteer.add_rating(feedback.rating, replaces=previous_rating)
                await volunteer.save(store)
        return help_request
