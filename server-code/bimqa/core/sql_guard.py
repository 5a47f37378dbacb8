# bimqa/core/sql_guard.py
import re
from bimqa.core.sql_policy import should_inject_limit

# Allow only safe, single-statement, read-only queries
ALLOW = re.compile(r"^\s*(?:select|with)\b", re.I)
STRIP = re.compile(r"/\*.*?\*/|--.*?$", flags=re.M | re.S)  # strip /* */ and -- comments
DANGERS = re.compile(r"\b(insert|update|delete|merge|alter|drop|truncate|grant|revoke|create|copy|vacuum|analyze|explain|commit|rollback|begin|set|reset|attach|detach|pragma)\b", re.I)
LIMIT = re.compile(r"\blimit\s+\d+\s*$", re.I)


def sanitize_sql(sql: str, default_limit: int, dialect: str = "postgresql", inject_limit: bool = True) -> str:
    s = STRIP.sub(" ", sql).strip()
    if ";" in s:
        raise ValueError("Multiple statements not allowed.")
    if (not ALLOW.search(s)) or DANGERS.search(s):
        raise ValueError("Only read-only queries are allowed.")
    # Inject LIMIT if missing and query is not aggregate/grouped
    if inject_limit and LIMIT.search(s) is None and should_inject_limit(s, dialect):
        s = f"{s} LIMIT {int(default_limit)}"
    return s
