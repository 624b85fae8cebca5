"""Read and edit the signed-in user's profile row."""

from aitodo.models.profile import UserProfile, UserProfileUpdate
from aitodo.services.base import BaseService


class ProfileService(BaseService):
    def get_profile(self) -> UserProfile:
        return self.backend.get_profile()

    def update_profile(self, data: UserProfileUpdate) -> UserProfile:
        if data.name is not None:
            data.name = data.name.strip() or None
        return self.backend.update_profile(data)
