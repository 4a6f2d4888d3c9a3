"""
AuthCore - registration, login and access-token issuance.

Usage:
    from authcore import AuthCore, get_settings
    from authcore.database import create_engine, create_session_factory, init_db

    settings = get_settings()
    engine = create_engine(settings)
    await init_db(engine)
    auth = AuthCore.from_settings(settings, create_session_factory(engine))
    result = await auth.login(email, password, origin_address="203.0.113.7")
"""

from authcore.config import Settings, get_settings
from authcore.kernel.identity.auth_service import AuthCore

__version__ = "0.1.0"

__all__ = [
    "AuthCore",
    "Settings",
    "get_settings",
]
