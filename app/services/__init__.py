"""
Application Services - Business Logic Layer

Services contain business logic extracted from route handlers,
coordinating repositories and external services.
"""

from app.services.quota_service import QuotaService
from app.services.proposal_service import ProposalService, ProposalRequest, get_proposal_service
from app.services.auth_service import AuthService, get_auth_service
from app.services.user_service import UserService, get_user_service
from app.services.analytics_service import AnalyticsService, get_analytics_service

__all__ = [
    "QuotaService",
    "ProposalService",
    "ProposalRequest",
    "get_proposal_service",
    "AuthService",
    "get_auth_service",
    "UserService",
    "get_user_service",
    "AnalyticsService",
    "get_analytics_service",
]
