"""
OptiFuel — Application State Store
==================================
- One explicit AppState per user session (profile, language, notifications)
- In-memory only: a process restart is a full session reset
- SessionRegistry hands out one session object per user id
"""

from typing import Any, Callable, Dict, List, Optional

from memory.models import Notification, UserProfile
from tools.localization import DEFAULT_LANGUAGE, is_supported_language, translate

# =============================================================================
# CONFIGURATION
# =============================================================================
STATE_CONFIG = {
    "max_notifications": 20,
}


class ProfileMissingError(Exception):
    """Raised when an operation needs a profile and none has been created."""


# =============================================================================
# APP STATE
# =============================================================================
class AppState:
    """Profile, active language and notification log for one session."""

    def __init__(self, language: str = DEFAULT_LANGUAGE):
        self.profile: Optional[UserProfile] = None
        self.language = language if is_supported_language(language) else DEFAULT_LANGUAGE
        self.notifications: List[Notification] = []

    # -------------------------------------------------------------------------
    # Profile
    # -------------------------------------------------------------------------
    def set_profile(self, profile: Optional[UserProfile]) -> None:
        self.profile = profile

    def require_profile(self) -> UserProfile:
        if self.profile is None:
            raise ProfileMissingError("No profile has been created for this session")
        return self.profile

    def update_profile(self, **changes: Any) -> UserProfile:
        """Replace the profile wholesale with the given fields changed."""
        current = self.require_profile()
        data = current.model_dump()
        data.update({k: v for k, v in changes.items() if v is not None})
        self.profile = UserProfile(**data)
        return self.profile

    def upgrade_to_premium(self) -> UserProfile:
        return self.update_profile(subscription="Premium")

    @property
    def is_premium(self) -> bool:
        return self.profile is not None and self.profile.is_premium

    # -------------------------------------------------------------------------
    # Language
    # -------------------------------------------------------------------------
    def set_language(self, language: str) -> None:
        if not is_supported_language(language):
            raise ValueError(f"Unsupported language: {language}")
        self.language = language

    def translate(self, key: str, **params) -> str:
        return translate(key, self.language, **params)

    # -------------------------------------------------------------------------
    # Notifications
    # -------------------------------------------------------------------------
    def add_notification(self, message: str) -> Notification:
        """Prepend a fresh unread entry; entries beyond the cap are dropped."""
        notification = Notification(message=message)
        self.notifications.insert(0, notification)
        del self.notifications[STATE_CONFIG["max_notifications"]:]
        return notification

    def mark_notification_read(self, notification_id: str) -> bool:
        for notification in self.notifications:
            if notification.id == notification_id:
                notification.read = True
                return True
        return False

    def mark_all_notifications_read(self) -> None:
        for notification in self.notifications:
            notification.read = True

    @property
    def unread_count(self) -> int:
        return sum(1 for n in self.notifications if not n.read)

    # -------------------------------------------------------------------------
    # Lifecycle
    # -------------------------------------------------------------------------
    def reset(self) -> None:
        self.profile = None
        self.language = DEFAULT_LANGUAGE
        self.notifications = []

    def to_dict(self) -> Dict[str, Any]:
        return {
            "profile": self.profile.model_dump(mode="json") if self.profile else None,
            "language": self.language,
            "unread_notifications": self.unread_count,
        }


# =============================================================================
# SESSION REGISTRY
# =============================================================================
class SessionRegistry:
    """Creates one session object per user id on first use."""

    def __init__(self, factory: Callable[[str], Any]):
        self._factory = factory
        self._sessions: Dict[str, Any] = {}

    def get(self, user_id: str) -> Any:
        if user_id not in self._sessions:
            self._sessions[user_id] = self._factory(user_id)
            print(f"📂 New session for user: {user_id}")
        return self._sessions[user_id]

    def discard(self, user_id: str) -> None:
        self._sessions.pop(user_id, None)

    def __contains__(self, user_id: str) -> bool:
        return user_id in self._sessions

    def __len__(self) -> int:
        return len(self._sessions)


__all__ = [
    "STATE_CONFIG",
    "ProfileMissingError",
    "AppState",
    "SessionRegistry",
]
