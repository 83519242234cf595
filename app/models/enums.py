from enum import Enum

class ApplicationStatus(str, Enum):
    Applied = "applied"
    Approved = "approved"
    Rejected = "rejected"


class UserStatus(str, Enum):
    Active = "active"
    Blocked = "blocked"
