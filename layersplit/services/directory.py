"""Identity directory: chat identities, wallet links and groups"""

import logging
from typing import List, Optional
from sqlalchemy.orm import Session

from layersplit.domain.exceptions import NotFound
from layersplit.infrastructure.database.models import Group, GroupMember, User
from layersplit.infrastructure.database.repositories import GroupRepository, UserRepository
from layersplit.infrastructure.sui.builder import validate_address

logger = logging.getLogger(__name__)


class Directory:
    """Resolves chat handles to users and maintains wallet links and group membership"""

    def __init__(self, db: Session):
        self.db = db
        self.users = UserRepository(db)
        self.groups = GroupRepository(db)

    def link_wallet(self, telegram_id: int, wallet_address: str, username: Optional[str] = None) -> User:
        """Create the user on first link; relinking replaces the address and name"""
        validate_address(wallet_address)
        user = self.users.get_by_telegram_id(telegram_id)
        if user is None:
            user = self.users.create(telegram_id, wallet_address=wallet_address, username=username)
        else:
            user.wallet_address = wallet_address
            if username is not None:
                user.username = username
        self.db.commit()
        logger.info("Wallet linked", extra={"telegram_id": telegram_id, "user_id": str(user.id)})
        return user

    def resolve_user(self, handle: int | str) -> User:
        """
        Numeric handles are chat ids; anything else is a username with an
        optional leading @.

        Raises:
            NotFound: no user with that identity
        """
        if isinstance(handle, int) or str(handle).lstrip("-").isdigit():
            user = self.users.get_by_telegram_id(int(handle))
        else:
            user = self.users.get_by_username(str(handle).lstrip("@"))
        if user is None:
            raise NotFound("User", handle)
        return user

    def get_group(self, telegram_group_id: int) -> Group:
        group = self.groups.get_by_telegram_id(telegram_group_id)
        if group is None:
            raise NotFound("Group", telegram_group_id)
        return group

    def upsert_group(self, telegram_group_id: int, name: str, creator_handle: int | str) -> Group:
        """Create or rename a group; the creator becomes an admin member"""
        creator = self.resolve_user(creator_handle)
        group = self.groups.get_by_telegram_id(telegram_group_id)
        if group is None:
            group = self.groups.create(telegram_group_id, name)
        else:
            group.name = name

        membership = self.groups.get_membership(group.id, creator.id)
        if membership is None:
            self.groups.add_member(group.id, creator.id, is_admin=True)
        else:
            membership.is_admin = True
        self.db.commit()
        return group

    def add_member(
        self,
        telegram_group_id: int,
        telegram_id: int,
        is_admin: bool = False,
        username: Optional[str] = None,
    ) -> GroupMember:
        """
        Register a chat member in a group. Members who have not linked a
        wallet yet get a user record without an address.
        """
        group = self.get_group(telegram_group_id)
        user = self.users.get_by_telegram_id(telegram_id)
        if user is None:
            user = self.users.create(telegram_id, username=username)

        membership = self.groups.get_membership(group.id, user.id)
        if membership is None:
            membership = self.groups.add_member(group.id, user.id, is_admin=is_admin)
        else:
            membership.is_admin = is_admin
        self.db.commit()
        return membership

    def list_members(self, telegram_group_id: int) -> List[GroupMember]:
        group = self.get_group(telegram_group_id)
        return self.groups.list_members(group.id)
