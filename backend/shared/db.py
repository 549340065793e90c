from supabase import ClientOptions, create_client, Client
from dotenv import load_dotenv
import os

load_dotenv()


def get_supabase_client(request_timeout: float | None = None) -> Client:
    """
    Get initialized Supabase client.

    Args:
        request_timeout: Optional per-request timeout (seconds) for table queries.
                         The saved-search runner passes its retrieval timeout so a
                         stalled query fails inside the worker thread as well.
    """
    url: str | None = os.getenv("SUPABASE_URL")
    key: str | None = os.getenv("SUPABASE_SERVICE_KEY")

    if not url or not key:
        raise ValueError("SUPABASE_URL and SUPABASE_SERVICE_KEY must be set")

    if request_timeout is None:
        return create_client(url, key)

    return create_client(
        url, key, options=ClientOptions(postgrest_client_timeout=request_timeout)
    )
