"""Users, groups and the registry that holds a tracker's state."""

from __future__ import annotations

import threading
from dataclasses import dataclass

_WHITESPACE = " \n\r\t"


@dataclass
class User:
    """A registered user."""

    user_id: str
    password: str
    is_owner: bool = False

    def make_owner(self):
        """Mark the user as owning a group."""
        self.is_owner = True


class Group:
    """A group with an owner, members and pending join requests."""

    def __init__(self, group_id):
        self.group_id = group_id
        self.owner_id = None
        self.members: dict[str, User] = {}
        self.requests: dict[str, User] = {}

    def member_count(self):
        """Return the number of members, the owner included."""
        return len(self.members)

    def add_member(self, user):
        self.members[user.user_id] = user

    def has_member(self, user_id):
        return user_id in self.members

    def remove_member(self, user_id):
        """Remove a member; unknown ids are ignored."""
        self.members.pop(user_id, None)

    def set_owner(self, user):
        """Make ``user`` the owner and a member of the group."""
        self.owner_id = user.user_id
        self.members[user.user_id] = user

    def add_request(self, user):
        self.requests[user.user_id] = user

    def accept_request(self, user_id):
        """Move a pending request into the members; return whether one existed."""
        user = self.requests.pop(user_id, None)
        if user is None:
            return False
        self.members[user_id] = user
        return True

    def pending_requests(self):
        """Return one line per pending request."""
        return [f"{user_id} {user.user_id}" for user_id, user in self.requests.items()]


class Registry:
    """All users, groups and sessions known to one tracker."""

    def __init__(self):
        self.users: dict[str, User] = {}
        self.groups: dict[str, Group] = {}
        self.logged_in: dict[str, User] = {}
        self.group_owners: dict[str, Group] = {}
        self.lock = threading.RLock()

    def is_group_owner(self, user_id):
        return user_id in self.group_owners

    def is_group(self, group_id):
        return group_id in self.groups

    def is_user(self, user_id):
        return user_id in self.users

    def is_logged_in(self, user_id):
        return user_id in self.logged_in

    def create_user(self, user_id, password):
        """Register a new user; raise ValueError if the id is taken."""
        with self.lock:
            if user_id in self.users:
                raise ValueError(f"UserID already exists: {user_id}")
            user = User(user_id, password)
            self.users[user_id] = user
            return user

    def create_group(self, group_id, owner_id):
        """Create a group owned by ``owner_id``; raise KeyError for an unknown owner."""
        with self.lock:
            owner = self.users[owner_id]
            group = Group(group_id)
            group.set_owner(owner)
            self.groups[group_id] = group
            self.group_owners[owner_id] = group
            return group


def trim(text):
    """Strip spaces, tabs and line endings from both ends."""
    return text.strip(_WHITESPACE)


def tokenize(text):
    """Split on single spaces and trim each piece.

    Consecutive spaces yield empty tokens; a single trailing space does not.
    """
    if not text:
        return []
    parts = text.split(" ")
    if parts[-1] == "":
        parts.pop()
    return [trim(part) for part in parts]