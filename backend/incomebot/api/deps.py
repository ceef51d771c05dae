"""FastAPI dependency injection — application context lookup."""
from fastapi import Request

from incomebot.context import AppContext
from incomebot.errors import NotFoundError
from incomebot.models.report_models import Manager


def get_context(request: Request) -> AppContext:
    return request.app.state.context


async def require_manager(ctx: AppContext, manager_id: int) -> Manager:
    """Load a manager or raise NotFoundError (mapped to HTTP 404)."""
    manager = await ctx.repository.get_manager(manager_id)
    if manager is None:
        raise NotFoundError(f"Manager {manager_id} not found")
    return manager
