"""Owner notification acknowledgment.

Nothing is delivered; the caller gets the message that would have been sent.
"""
from __future__ import annotations

from app.models.items import LostItemReport, NotificationAck
from app.scripts.logging_config import get_logger

logger = get_logger("notifier")


def notify_owner(lost_item: LostItemReport) -> NotificationAck:
    recipient = lost_item.profile.full_name
    message = f'A notification has been sent to {recipient} regarding their "{lost_item.item_name}".'
    logger.info("notify_ack lost=%s recipient=%r contact=%s delivered=False",
                lost_item.id, recipient, lost_item.profile.contact_number)
    return NotificationAck(lost_item_id=lost_item.id, recipient=recipient, message=message)
