"""Supabase adapters (auth admin API and PostgREST tables)."""
