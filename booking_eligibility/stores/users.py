"""
In-memory user store.

In production this is a projection query on the User collection
(``isActive isBlocked isEmailVerified isMobileVerified``).
"""

from typing import Iterable, Optional

from booking_eligibility.schemas.customer_schema import User


class InMemoryUserStore:
    def __init__(self, users: Iterable[User] = ()) -> None:
        self._users: dict[str, User] = {user.id: user for user in users}

    def add_user(self, user: User) -> None:
        self._users[user.id] = user

    async def get_user(self, user_id: str) -> Optional[User]:
        return self._users.get(user_id)
