from pydantic import BaseModel


class StatsResponse(BaseModel):
    online: int
    total: int
    users: int
