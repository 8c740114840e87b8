from pydantic import BaseModel


class BasicHealthResponse(BaseModel):
    status: str


class HealthResponse(BaseModel):
    status: str
    version: str
    checks: dict[str, dict]
