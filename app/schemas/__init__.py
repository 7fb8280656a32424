"""
Pydantic 스키마 패키지
"""

from .user import (
    ProfileSummary,
    ProfileResponse,
    UserResponse,
    ProfileUpdate,
    AvailabilityUpdate,
    AvatarUpload,
)
from .plan import (
    PlanResponse,
    PlanCreate,
    PlanUpdate,
    SubscribeRequest,
    SubscribeResponse,
    SubscriptionResponse,
    UsageSummary,
)
from .auth import RegisterRequest, LoginRequest, AuthResponse, MeResponse
from .dream import DreamCreate, DreamUpdate, DreamAudioUpload, DreamResponse, DreamStats
from .message import MessageCreate, MessageResponse
from .comment import CommentCreate, CommentResponse
from .request import RequestCreate, RequestUpdate, RequestResponse
from .chat import ChatMessageCreate, ChatMessageResponse, NotificationsResponse
from .payment import CheckoutRequest, CheckoutResponse, PaymentResponse
from .admin import AdminUserUpdate, MakeSuperAdminRequest, AdminStats, AdminLogResponse
from .page import PageResponse, PageUpdate
