"""Centralized authentication dependencies.

Provides user-scoped and service-role Supabase clients, plus the id of
the calling user, which doubles as the session id batches are filed
under.
"""

import os

from fastapi import Depends, Header
from supabase import Client, create_client

from apps.api.core.errors import AuthenticationError


def _get_supabase_url() -> str:
    url = os.environ.get("SUPABASE_URL") or os.environ.get("NEXT_PUBLIC_SUPABASE_URL")
    if not url:
        raise RuntimeError("SUPABASE_URL is not configured")
    return url


def _get_supabase_anon_key() -> str:
    key = os.environ.get("SUPABASE_ANON_KEY") or os.environ.get("NEXT_PUBLIC_SUPABASE_ANON_KEY")
    if not key:
        raise RuntimeError("SUPABASE_ANON_KEY is not configured")
    return key


async def get_user_token(authorization: str = Header(default="")) -> str:
    """Extract the Bearer token from the Authorization header."""
    if not authorization.startswith("Bearer "):
        raise AuthenticationError(
            "Missing or invalid Authorization header. Expected: Bearer <token>"
        )

    token = authorization[7:].strip()
    if not token:
        raise AuthenticationError("Missing bearer token")
    return token


async def get_user_client(token: str = Depends(get_user_token)) -> Client:
    """Provide a Supabase client authenticated with the user's JWT.

    RLS policies are enforced for every query, so a user only ever sees
    their own batches. The refresh token is empty: each request carries
    a fresh access token and the API never refreshes it.
    """
    client = create_client(_get_supabase_url(), _get_supabase_anon_key())
    client.auth.set_session(token, "")
    return client


async def get_current_user_id(client: Client = Depends(get_user_client)) -> str:
    """Resolve the caller's user id, used as the batch session id."""
    user_response = client.auth.get_user()
    if not user_response or not user_response.user:
        raise AuthenticationError("Invalid bearer token")
    return str(user_response.user.id)


def get_service_client() -> Client:
    """Provide a service-role Supabase client (bypasses RLS).

    Used for the shared customer directory and the command line importer.
    """
    url = _get_supabase_url()
    service_key = os.environ.get("SUPABASE_SERVICE_KEY") or os.environ.get(
        "SUPABASE_SERVICE_ROLE_KEY", ""
    )
    if not service_key:
        raise RuntimeError("SUPABASE_SERVICE_KEY is not configured")
    return create_client(url, service_key)
