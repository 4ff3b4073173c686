from uuid_utils import uuid7


def new_id() -> str:
    """Time-ordered uuid7 as a 36-char string (portable across Postgres and SQLite)"""
    return str(uuid7())
