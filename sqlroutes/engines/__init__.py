"""
Execution engines. Only SQL for now (see engines.sql).
"""

from sqlroutes.engines.sql import build_query_set, execute_query_set

__all__ = ["build_query_set", "execute_query_set"]
