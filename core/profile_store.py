# core/profile_store.py

"""
Helpers for the `users` profile table and the `subscriptions` history table.

The profile row shares its primary key with the Supabase Auth account.
All helpers take the service-role client explicitly and let Supabase
errors propagate; callers decide whether a failure is fatal.
"""

from typing import Optional, Dict, Any, List
from datetime import datetime, timezone

from supabase import Client


PROFILES_TABLE = "users"
SUBSCRIPTIONS_TABLE = "subscriptions"

PROFILE_COLUMNS = (
    "id, name, email, role, property_name, approved, subscribed, "
    "subscription_status, plan, stripe_customer_id, email_verified, "
    "verification_token, verification_token_expires_at"
)


def _first(result) -> Optional[Dict[str, Any]]:
    if result is None or not result.data:
        return None
    return result.data[0]


def utc_now() -> datetime:
    return datetime.now(timezone.utc)


def parse_timestamp(value) -> Optional[datetime]:
    """Supabase returns timestamptz as ISO strings (sometimes with a Z)."""
    if value is None or isinstance(value, datetime):
        return value
    parsed = datetime.fromisoformat(str(value).replace("Z", "+00:00"))
    if parsed.tzinfo is None:
        parsed = parsed.replace(tzinfo=timezone.utc)
    return parsed


# -----------------------------------------------------
# Lookups
# -----------------------------------------------------
def find_by_email(client: Client, email: str) -> Optional[Dict[str, Any]]:
    result = (
        client.table(PROFILES_TABLE)
        .select(PROFILE_COLUMNS)
        .eq("email", email)
        .limit(1)
        .execute()
    )
    return _first(result)


def find_by_id(client: Client, user_id: str) -> Optional[Dict[str, Any]]:
    result = (
        client.table(PROFILES_TABLE)
        .select(PROFILE_COLUMNS)
        .eq("id", user_id)
        .limit(1)
        .execute()
    )
    return _first(result)


def find_by_token(client: Client, token: str) -> Optional[Dict[str, Any]]:
    result = (
        client.table(PROFILES_TABLE)
        .select(PROFILE_COLUMNS)
        .eq("verification_token", token)
        .limit(1)
        .execute()
    )
    return _first(result)


# -----------------------------------------------------
# Writes
# -----------------------------------------------------
def update_profile(client: Client, user_id: str, fields: Dict[str, Any]) -> Optional[Dict[str, Any]]:
    """
    Returns the updated row, or None when no row has this id yet.
    """
    result = (
        client.table(PROFILES_TABLE)
        .update(fields)
        .eq("id", user_id)
        .execute()
    )
    return _first(result)


def update_by_customer(client: Client, customer_id: str, fields: Dict[str, Any]) -> List[Dict[str, Any]]:
    result = (
        client.table(PROFILES_TABLE)
        .update(fields)
        .eq("stripe_customer_id", customer_id)
        .execute()
    )
    return result.data or []


def insert_profile(client: Client, row: Dict[str, Any]) -> Optional[Dict[str, Any]]:
    result = client.table(PROFILES_TABLE).insert(row).execute()
    return _first(result)


def consume_verification_token(client: Client, user_id: str, token: str) -> Optional[Dict[str, Any]]:
    """
    Marks the profile verified and clears the token in a single update.
    Filtered on the token too, so a concurrent consumer gets None.
    """
    result = (
        client.table(PROFILES_TABLE)
        .update({
            "email_verified": True,
            "verification_token": None,
            "verification_token_expires_at": None,
        })
        .eq("id", user_id)
        .eq("verification_token", token)
        .execute()
    )
    return _first(result)


def upsert_subscription_record(
    client: Client,
    user_id: str,
    stripe_customer_id: str,
    stripe_subscription_id: str,
    plan: Optional[str],
    status: str = "active",
) -> Optional[Dict[str, Any]]:
    """
    Subscription history row, keyed by the Stripe subscription id so a
    redelivered webhook rewrites the same row.
    """
    record = {
        "user_id": user_id,
        "stripe_customer_id": stripe_customer_id,
        "stripe_subscription_id": stripe_subscription_id,
        "plan": plan,
        "status": status,
    }
    record = {k: v for k, v in record.items() if v is not None}

    result = (
        client.table(SUBSCRIPTIONS_TABLE)
        .upsert(record, on_conflict="stripe_subscription_id")
        .execute()
    )
    return _first(result)
