# core/supabase_client.py

from supabase import create_client, Client
from core.config import settings
from core.logging_config import logger
from core.profile_store import PROFILES_TABLE, SUBSCRIPTIONS_TABLE


# ============================================================
# Supabase Client Factory (service role)
# ============================================================

def get_supabase_client() -> Client:
    """
    Creates a Supabase client using the SERVICE ROLE KEY.
    REQUIRED for:
        - auth.admin.create_user / delete_user
        - auth.admin.update_user_by_id (email confirmation mirror)
        - full read/write on the users + subscriptions tables
    """
    supabase_url = settings.SUPABASE_URL
    supabase_key = settings.SUPABASE_SERVICE_ROLE_KEY

    if not supabase_url or not supabase_key:
        logger.error("Missing Supabase credentials")
        logger.error(f"   URL: {supabase_url}")
        logger.error(f"   SERVICE ROLE KEY: {'SET' if supabase_key else 'MISSING'}")
        return None

    try:
        return create_client(supabase_url, supabase_key)
    except Exception as e:
        logger.error(f"Supabase Init Error: {e}", exc_info=True)
        return None


# ============================================================
# Ping Supabase for health checks
# ============================================================

def ping_supabase(client: Client = None) -> dict:
    """
    Reads one row id from each table the registration flow writes.
    Auth tables are not queried.
    """
    client = client or get_supabase_client()
    if client is None:
        return {"service": "Supabase", "status": "not_configured"}

    tables = {}
    for name in (PROFILES_TABLE, SUBSCRIPTIONS_TABLE):
        try:
            res = client.table(name).select("id").limit(1).execute()
            tables[name] = {"status": "ok", "rows_found": len(res.data or [])}
        except Exception as err:
            logger.warning(f"Health check query on {name} failed: {err}")
            tables[name] = {"status": "error", "detail": str(err)}

    healthy = all(t["status"] == "ok" for t in tables.values())
    return {
        "service": "Supabase",
        "status": "ok" if healthy else "degraded",
        "tables": tables,
    }
