"""Store key and channel layout."""

USERS = "chat:users"
ROOMS = "chat:rooms"
ACCOUNTS = "chat:accounts"
IP_TO_USER = "chat:ip-to-user"
USERNAMES = "chat:usernames"

UPDATES_CHANNEL = "chat:updates"


def room_messages(room_id: str) -> str:
    return f"chat:messages:{room_id}"


def room_members(room_id: str) -> str:
    return f"chat:room-members:{room_id}"


def room_channel(room_id: str) -> str:
    return f"{UPDATES_CHANNEL}:{room_id}"
