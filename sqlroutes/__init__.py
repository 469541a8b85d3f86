"""
sqlroutes: serve parameterized SQL statements as JSON HTTP endpoints.
"""

__version__ = "0.1.0"
