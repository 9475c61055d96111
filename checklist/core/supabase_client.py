# checklist/core/supabase_client.py

from typing import Optional

from fastapi import Request
from supabase import AsyncClient, acreate_client

from checklist.core.config import get_settings


def _extract_bearer_token(request: Request) -> Optional[str]:
    """
    Extracts 'Bearer <token>' from the Authorization header, if present.
    """
    auth = request.headers.get("Authorization") or request.headers.get("authorization")
    if not auth:
        return None
    parts = auth.split(" ", 1)
    if len(parts) != 2:
        return None
    scheme, token = parts[0], parts[1]
    if scheme.lower() != "bearer" or not token:
        return None
    return token


async def get_supabase_for_request(request: Request) -> AsyncClient:
    """
    Builds a Supabase client per request, authorised with the caller's token
    so PostgREST enforces row-level security for that user.

    The token is only forwarded; validating it is Supabase's job.
    """
    settings = get_settings()
    settings.require_supabase()

    # One client per request so auth state is never shared between callers
    sb = await acreate_client(settings.supabase_url, settings.supabase_key)

    token = _extract_bearer_token(request)
    if token:
        sb.postgrest.auth(token)

    return sb
