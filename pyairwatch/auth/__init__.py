"""Request authentication for pyairwatch.

AirWatch authenticates each REST call with HTTP basic auth plus the tenant
API key in the ``aw-tenant-code`` header.

Public API:

build_auth_headers : function
    Build the headers every API request carries.
basic_auth_value : function
    Encode a username/password pair as a Basic Authorization value.
"""

from .headers import basic_auth_value, build_auth_headers

__all__ = ["basic_auth_value", "build_auth_headers"]
