"""
Database module for serpsurfer.

- Pydantic models for traffic and SEO metadata records
- The storage interface the campaign runner reports through
- In-memory and Supabase implementations
"""

from serpsurfer.db.models import (
    SeoSummary,
    TrafficRecord,
    WebsiteMetadataRecord,
)

from serpsurfer.db.storage import (
    TrafficStore,
    InMemoryTrafficStore,
)

from serpsurfer.db.supabase_client import (
    SupabaseTrafficStore,
    get_supabase,
    is_supabase_enabled,
)

__all__ = [
    # Models
    "SeoSummary",
    "TrafficRecord",
    "WebsiteMetadataRecord",
    # Stores
    "TrafficStore",
    "InMemoryTrafficStore",
    "SupabaseTrafficStore",
    # Client functions
    "get_supabase",
    "is_supabase_enabled",
]
