"""Hadith & Quran content management client."""

from hadith_cms.api import GatewayError, SupabaseGateway
from hadith_cms.app import LocalServices, Services
from hadith_cms.core.cache import Consistency, ContentCache
from hadith_cms.protocols import GatewayProtocol, KeyValueStoreProtocol

__all__ = [
    "Consistency",
    "ContentCache",
    "GatewayError",
    "GatewayProtocol",
    "KeyValueStoreProtocol",
    "LocalServices",
    "Services",
    "SupabaseGateway",
]
