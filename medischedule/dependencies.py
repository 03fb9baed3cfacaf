"""Dependency injection providers for FastAPI"""
from fastapi import Request
from slowapi.util import get_remote_address

from medischedule.booking import FollowUpBooker
from medischedule.config import Settings
from medischedule.gateway import CallGateway
from medischedule.knowledge import HelpBot, MedicalKnowledgeBase
from medischedule.registry import CallRegistry
from medischedule.store import ClinicStore


def get_settings(request: Request) -> Settings:
    return request.app.state.settings


def get_call_registry(request: Request) -> CallRegistry:
    return request.app.state.call_registry


def get_call_gateway(request: Request) -> CallGateway:
    return request.app.state.call_gateway


def get_clinic_store(request: Request) -> ClinicStore:
    return request.app.state.clinic_store


def get_booker(request: Request) -> FollowUpBooker:
    return request.app.state.booker


def get_knowledge_base(request: Request) -> MedicalKnowledgeBase:
    return request.app.state.knowledge_base


def get_help_bot(request: Request) -> HelpBot:
    return request.app.state.help_bot


# Rate limiting
def get_client_ip(request: Request) -> str:
    """Client IP for rate limiting, honoring the first X-Forwarded-For hop"""
    forwarded_for = request.headers.get("x-forwarded-for")
    if forwarded_for:
        return forwarded_for.split(",")[0].strip()
    return get_remote_address(request)
