"""
MongoDB Repositories - Domain-specific data access.

- UserRepository - accounts, plans, monthly quota counter
- ProposalRepository - generated proposals and admin reporting queries
"""

from app.infra.mongodb.repositories.user_repo import (
    UserRepository,
    get_user_repo,
)
from app.infra.mongodb.repositories.proposal_repo import (
    ProposalRepository,
    get_proposal_repo,
)

__all__ = [
    "UserRepository",
    "get_user_repo",
    "ProposalRepository",
    "get_proposal_repo",
]
