"""Data builders for tests.

Rows are written straight through the ORM so each test controls exactly
what exists; principals are built the same way the auth layer builds them.
"""

from __future__ import annotations

from dataclasses import dataclass
from datetime import timedelta
from typing import TYPE_CHECKING

from discuss_board.db.models import (
    Administrator,
    Comment,
    Member,
    Moderator,
    Post,
    UserAccount,
)
from discuss_board.db.models.base import AccountStatus, RoleStatus, utcnow
from discuss_board.services.auth import AuthService
from discuss_board.services.authz import Principal, RoleClass
from discuss_board.services.security import hash_password

if TYPE_CHECKING:
    from sqlalchemy.ext.asyncio import AsyncSession

    from discuss_board.core.config import Settings

MEMBER_PASSWORD = "member-password-1"
ADMIN_PASSWORD = "Admin-Password-1!"


@dataclass
class Actor:
    """An account with its member profile, staff rows and principal."""

    account: UserAccount
    member: Member
    principal: Principal
    moderator: Moderator | None = None
    administrator: Administrator | None = None

    @property
    def email(self) -> str:
        return self.account.email


async def create_member(
    session: AsyncSession,
    nickname: str = "ada",
    *,
    email: str | None = None,
    password: str = MEMBER_PASSWORD,
    verified: bool = True,
    account_status: AccountStatus = AccountStatus.ACTIVE,
    member_status: AccountStatus = AccountStatus.ACTIVE,
) -> Actor:
    account = UserAccount(
        email=email or f"{nickname}@example.com",
        password_hash=hash_password(password, rounds=4),
        status=account_status,
        email_verified=verified,
    )
    session.add(account)
    await session.flush()

    member = Member(user_account_id=account.id, nickname=nickname, status=member_status)
    session.add(member)
    await session.flush()

    principal = Principal.for_role(
        account_id=account.id, member_id=member.id, role=RoleClass.MEMBER
    )
    return Actor(account=account, member=member, principal=principal)


async def create_moderator(session: AsyncSession, nickname: str = "mod", **kwargs) -> Actor:
    actor = await create_member(session, nickname, **kwargs)
    moderator = Moderator(member_id=actor.member.id, status=RoleStatus.ACTIVE)
    session.add(moderator)
    await session.flush()

    actor.moderator = moderator
    actor.principal = Principal.for_role(
        account_id=actor.account.id,
        member_id=actor.member.id,
        role=RoleClass.MODERATOR,
        moderator_id=moderator.id,
    )
    return actor


async def create_administrator(
    session: AsyncSession, nickname: str = "admin", **kwargs
) -> Actor:
    kwargs.setdefault("password", ADMIN_PASSWORD)
    actor = await create_member(session, nickname, **kwargs)
    administrator = Administrator(member_id=actor.member.id, status=RoleStatus.ACTIVE)
    session.add(administrator)
    await session.flush()

    actor.administrator = administrator
    actor.principal = Principal.for_role(
        account_id=actor.account.id,
        member_id=actor.member.id,
        role=RoleClass.ADMINISTRATOR,
        administrator_id=administrator.id,
    )
    return actor


async def create_post(
    session: AsyncSession,
    author: Actor,
    *,
    title: str = "Hello board",
    body: str = "First post on the board.",
    age: timedelta | None = None,
    **fields,
) -> Post:
    post = Post(author_member_id=author.member.id, title=title, body=body, tags=[], **fields)
    if age is not None:
        post.created_at = utcnow() - age
    session.add(post)
    await session.flush()
    return post


async def create_comment(
    session: AsyncSession,
    author: Actor,
    post: Post,
    *,
    content: str = "Nice post",
    parent: Comment | None = None,
    age: timedelta | None = None,
) -> Comment:
    comment = Comment(
        post_id=post.id,
        author_member_id=author.member.id,
        parent_comment_id=parent.id if parent else None,
        content=content,
        nesting_level=parent.nesting_level + 1 if parent else 0,
    )
    if age is not None:
        comment.created_at = utcnow() - age
    session.add(comment)
    await session.flush()
    return comment


async def login_headers(
    session: AsyncSession,
    settings: Settings,
    actor: Actor,
    role: RoleClass = RoleClass.MEMBER,
    password: str | None = None,
) -> dict[str, str]:
    """Open a real session for ``actor`` and return its bearer header."""
    if password is None:
        password = ADMIN_PASSWORD if actor.administrator is not None else MEMBER_PASSWORD
    service = AuthService(session, settings.auth, settings.content)
    result = await service.login(role, email=actor.email, password=password)
    await session.commit()
    return {"Authorization": f"Bearer {result.tokens.access}"}
