from typing import AsyncGenerator, Optional
from fastapi import Header, HTTPException
from sqlalchemy.ext.asyncio import AsyncSession
from storekeeper.app.core.constants import USER_ID_HEADER
from storekeeper.app.core.database import get_sessionmaker


# One session per request; services receive it explicitly
async def get_session() -> AsyncGenerator[AsyncSession, None]:
    async with get_sessionmaker()() as session:
        yield session


# Caller identity is resolved here once and trusted as-is (issued upstream)
async def get_user_id(
    user_id: Optional[str] = Header(default=None, alias=USER_ID_HEADER),
) -> str:
    if not user_id or not user_id.strip():
        raise HTTPException(status_code=401, detail=f"{USER_ID_HEADER} header is required")
    return user_id.strip()
