import logging

from supabase import AsyncClient, AsyncClientOptions, acreate_client

from teamhub.config import settings
from teamhub.db.store import MembershipStore
from teamhub.db.supabase_store import SupabaseMembershipStore

logger = logging.getLogger(__name__)

service_client: AsyncClient | None = None


async def init_supabase_service_client():
    global service_client
    if not service_client:
        service_client = await acreate_client(
            settings.supabase_url,
            settings.supabase_service_key,
            options=AsyncClientOptions(
                postgrest_client_timeout=settings.store_timeout_seconds
            ),
        )
        logger.info("Initialized Supabase service client")


def get_service_client() -> AsyncClient:
    if not service_client:
        raise RuntimeError("supabase service client not initialized")
    return service_client


def get_membership_store() -> MembershipStore:
    return SupabaseMembershipStore(get_service_client())
