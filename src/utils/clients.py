"""Client initialization utilities.

Provides functions for initializing external service clients used by the
storage layer.
"""

from supabase import Client, create_client


def get_supabase_client(supabase_url: str, supabase_key: str) -> Client:
    """Initialize and return a Supabase client.

    Args:
        supabase_url: Supabase project URL (``SUPABASE_URL``).
        supabase_key: Supabase service role key (``SUPABASE_SERVICE_KEY``).

    Returns:
        Supabase client.

    Raises:
        ValueError: If the URL or key is missing.

    Examples:
        >>> supabase = get_supabase_client(config.supabase_url, config.supabase_key)
        >>> # Use client for table operations
    """
    if not supabase_url or not supabase_key:
        raise ValueError("SUPABASE_URL and SUPABASE_SERVICE_KEY environment variables are required")

    return create_client(supabase_url, supabase_key)
