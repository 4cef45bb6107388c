"""
User Repository - data access for API accounts
"""

from typing import Optional

from domain.models import User
from repositories.base import MongoRepository, to_object_id, utcnow


class UserRepository(MongoRepository[User]):
    model = User

    async def get_by_email(self, email: str) -> Optional[User]:
        return self._to_model(
            await self.collection.find_one({"email": email.strip().lower()})
        )

    async def get_by_username(self, username: str) -> Optional[User]:
        return self._to_model(
            await self.collection.find_one({"username": username.strip().lower()})
        )

    async def get_by_login(self, login: str) -> Optional[User]:
        """Look a user up by email or username"""
        value = login.strip().lower()
        return self._to_model(
            await self.collection.find_one(
                {"$or": [{"email": value}, {"username": value}]}
            )
        )

    async def set_refresh_token(self, user_id: str, token: Optional[str]) -> bool:
        return await self.update_fields(user_id, {"refreshToken": token})

    async def record_login(self, user_id: str, refresh_token: str) -> None:
        oid = to_object_id(user_id)
        if oid is None:
            return
        await self.collection.update_one(
            {"_id": oid},
            {
                "$inc": {"loginCount": 1},
                "$set": {
                    "lastLogin": utcnow(),
                    "refreshToken": refresh_token,
                    "updatedAt": utcnow(),
                },
            },
        )
