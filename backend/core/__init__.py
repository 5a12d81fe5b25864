# Core module exports
from core.config import settings, get_settings
from core.database import engine, Base, AsyncSessionLocal, get_db, GUID
from core.logging import (
    configure_logging,
    get_logger,
    bind_context,
    clear_context,
    unbind_context,
    generate_correlation_id,
    api_logger,
    engine_logger,
    db_logger,
    scheduler_logger,
    analytics_logger,
)
from core.locks import ProblemLockRegistry
from core.timeutils import utcnow
