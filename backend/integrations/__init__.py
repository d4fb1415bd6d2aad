# Integrations Package - external provider adapters

from .razorpay_gateway import RazorpayGateway
from .video_rooms import VideoRoomProvisioner
from .notifications import NotificationSender, normalize_number

__all__ = [
    "RazorpayGateway",
    "VideoRoomProvisioner",
    "NotificationSender",
    "normalize_number",
]
