"""View-models returned by the API.

Everything here is request-scoped; the upstream platforms are the source of truth.
"""

from .merch import (
    CartItem,
    CartItemsRequest,
    CheckoutLink,
    MerchCollection,
    MerchCollections,
    MerchListing,
    Money,
    Paging,
    Product,
    ProductImage,
    ProductVariant,
    VariantStock,
)
from .twitch import (
    ALL_PARTS,
    IDENTITY_PARTS,
    PRIVATE_PARTS,
    Broadcast,
    ChannelOverview,
    MessageResponse,
    OAuthURLResponse,
    OverviewPart,
    ScheduleItem,
    ScheduleVacation,
    StreamStatus,
    TokenPair,
    TwitchUser,
)
from .youtube import VIEW_COUNT_UNAVAILABLE, VideoSummary

__all__ = [
    "ALL_PARTS",
    "Broadcast",
    "CartItem",
    "CartItemsRequest",
    "ChannelOverview",
    "CheckoutLink",
    "IDENTITY_PARTS",
    "MerchCollection",
    "MerchCollections",
    "MerchListing",
    "MessageResponse",
    "Money",
    "OAuthURLResponse",
    "OverviewPart",
    "PRIVATE_PARTS",
    "Paging",
    "Product",
    "ProductImage",
    "ProductVariant",
    "ScheduleItem",
    "ScheduleVacation",
    "StreamStatus",
    "TokenPair",
    "TwitchUser",
    "VIEW_COUNT_UNAVAILABLE",
    "VariantStock",
    "VideoSummary",
]
