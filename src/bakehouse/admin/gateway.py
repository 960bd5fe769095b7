"""AdminGateway: where authenticated admin requests enter the core.

Checks the caller's permissions, charges their rate-limit window and then
hands the command to the engine. Every log line emitted while a command runs
carries the acting ``admin_id``.
"""

import itertools

import structlog

from bakehouse.admin.permissions import AdminSession, Permission
from bakehouse.admin.throttle import ActionRateLimiter
from bakehouse.engine import OrderFulfillmentEngine
from bakehouse.errors import PermissionDeniedError, RateLimitExceededError
from bakehouse.order.queries import OrderMetrics
from bakehouse.utils.logging import add_context, clear_context

logger = structlog.get_logger(__name__)


class AdminGateway:
    def __init__(self, engine: OrderFulfillmentEngine, limiter: ActionRateLimiter | None = None):
        self.engine = engine
        if limiter is None:
            limiter = ActionRateLimiter(
                max_actions=engine.config.rate_limit_max_actions,
                window_seconds=engine.config.rate_limit_window_seconds,
            )
        self.limiter = limiter
        self._calls = itertools.count(1)

    def _authorize(self, session: AdminSession, permission: Permission) -> None:
        if not session.is_active:
            logger.warning("Inactive admin rejected", permission=permission.value)
            raise PermissionDeniedError(session.admin_id, "active account")
        if not session.has_permission(permission):
            logger.warning("Permission denied", permission=permission.value, role=session.role.value)
            raise PermissionDeniedError(session.admin_id, permission.value)

    def _charge(self, session: AdminSession) -> None:
        if next(self._calls) % 100 == 0:
            self.limiter.evict_stale()
        try:
            self.limiter.hit(session.admin_id)
        except RateLimitExceededError:
            logger.warning("Admin rate limit exceeded")
            raise

    def execute(self, session: AdminSession, command, permission: Permission = Permission.ORDERS):
        """Run ``command`` on behalf of ``session``.

        Raises:
            PermissionDeniedError: inactive account or missing permission.
            RateLimitExceededError: too many actions in the current window.
        """
        add_context(admin_id=session.admin_id)
        try:
            self._authorize(session, permission)
            self._charge(session)
            result = self.engine.process(command)
            logger.info("Admin command executed", command=type(command).__name__)
            return result
        finally:
            clear_context()

    def dashboard(self, session: AdminSession) -> OrderMetrics:
        add_context(admin_id=session.admin_id)
        try:
            self._authorize(session, Permission.ANALYTICS)
            return self.engine.metrics()
        finally:
            clear_context()
