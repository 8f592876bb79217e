from push.schemas.notification import NotificationKind
from push.schemas.push import ActorProfile, NotificationContent

_TEMPLATES: dict[NotificationKind, tuple[str, str]] = {
    NotificationKind.LIKE: ("New Like", "{name} liked your post"),
    NotificationKind.FOLLOW: ("New Follower", "{name} started following you"),
    NotificationKind.COMMENT: ("New Comment", "{name} commented on your post"),
}


def compose_notification(
    kind: str, actor: ActorProfile, *, app_name: str = "ThisDay"
) -> NotificationContent:
    """Map a notification type to its alert title and body."""

    try:
        title, body = _TEMPLATES[NotificationKind(kind)]
    except ValueError:
        return NotificationContent(title=app_name, body="You have a new notification")
    return NotificationContent(title=title, body=body.format(name=actor.name))
