"""Discuss Board API routers.

Each router handles one namespace:
- auth: join, login, refresh and account recovery for every role
- public: read-only board content, no authentication
- member: authoring and the member's own records
- moderator: reports, moderation actions and content removal
- administrator: accounts, staff roles, policy data and compliance logs
"""

from discuss_board.api.routers.administrator import router as administrator_router
from discuss_board.api.routers.auth import router as auth_router
from discuss_board.api.routers.member import router as member_router
from discuss_board.api.routers.moderator import router as moderator_router
from discuss_board.api.routers.public import router as public_router

__all__ = [
    "administrator_router",
    "auth_router",
    "member_router",
    "moderator_router",
    "public_router",
]
