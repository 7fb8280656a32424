"""
모델 패키지
"""

from .user import User, Profile
from .subscription import Plan, UserPlan
from .dream import Dream
from .message import Message
from .comment import Comment
from .request import InterpretationRequest
from .chat import ChatMessage
from .payment import Payment
from .admin_log import AdminLog
from .page_content import PageContent

__all__ = [
    "User",
    "Profile",
    "Plan",
    "UserPlan",
    "Dream",
    "Message",
    "Comment",
    "InterpretationRequest",
    "ChatMessage",
    "Payment",
    "AdminLog",
    "PageContent",
]
