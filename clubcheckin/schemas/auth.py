"""Authenticated caller schema."""
from pydantic import BaseModel

from clubcheckin.core.constants import ROLE_ADMIN, ROLE_LEADER


class CurrentUser(BaseModel):
    """Identity asserted by the external identity provider's access token."""
    user_id: int
    role: str
    first_name: str = ""
    last_name: str = ""

    @property
    def is_admin(self) -> bool:
        return self.role == ROLE_ADMIN

    @property
    def is_leader(self) -> bool:
        return self.role == ROLE_LEADER
