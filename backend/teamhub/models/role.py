from enum import Enum


class TeamRole(str, Enum):
    OWNER = "owner"
    ADMIN = "admin"
    MEMBER = "member"

    @property
    def rank(self) -> int:
        return _RANKS[self]

    def can_assign(self, role: "TeamRole") -> bool:
        """Owners assign any role, admins assign at or below their own rank."""
        if self is TeamRole.MEMBER:
            return False
        return role.rank <= self.rank


_RANKS = {
    TeamRole.OWNER: 3,
    TeamRole.ADMIN: 2,
    TeamRole.MEMBER: 1,
}
