# supabase_client.py
import os
from typing import Optional

from dotenv import load_dotenv
from supabase import create_client, Client

DEFAULT_SCHEMA = "public"

_client: Optional[Client] = None


def get_schema() -> str:
    load_dotenv()
    return os.getenv("SCHEMA") or DEFAULT_SCHEMA


def get_client() -> Client:
    """
    Create the Supabase client on first use from SUPABASE_URL / SUPABASE_KEY
    (.env or environment) and reuse it afterwards.
    """
    global _client

    if _client is not None:
        return _client

    load_dotenv()
    url = os.getenv("SUPABASE_URL")
    key = os.getenv("SUPABASE_KEY")
    if not url or not key:
        raise RuntimeError("Set SUPABASE_URL and SUPABASE_KEY in .env or environment variables")

    _client = create_client(url, key)
    return _client
