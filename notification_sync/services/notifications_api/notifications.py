from typing import Optional, Dict, Any
from .base import BaseAPISection

class NotificationsSection(BaseAPISection):
    async def get(self, page: int = 1, page_size: int = 20) -> Optional[Dict[str, Any]]:
        params = {"page": page, "pageSize": page_size}
        return await self._make_request("GET", "notifications", params=params)

    async def markRead(self, notification_id: str) -> Optional[Dict[str, Any]]:
        return await self._make_request("POST", "notifications/mark-read", json={"id": notification_id})

    async def markAllRead(self) -> Optional[Dict[str, Any]]:
        return await self._make_request("POST", "notifications/mark-all-read")

    async def delete(self, notification_id: str) -> Optional[Dict[str, Any]]:
        return await self._make_request("DELETE", f"notifications/{notification_id}")
