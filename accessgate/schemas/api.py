from pydantic import BaseModel


class RecoverResponse(BaseModel):
    ok: bool = True
    message: str


class WebhookResponse(BaseModel):
    ok: bool
    ignored: bool | None = None
    event: str | None = None
    warning: str | None = None
    revoked: bool | None = None
    access_url: str | None = None
    error: str | None = None


class EntitlementSeedRequest(BaseModel):
    email: str
    note: str | None = None
    issue_access_link: bool = False


class EntitlementRevokeRequest(BaseModel):
    email: str
    note: str | None = None


class EntitlementOut(BaseModel):
    email: str
    active: bool
    source: str
    updated_at: str
    meta: dict
    access_url: str | None = None


class ContentOut(BaseModel):
    email: str
    downloads: list[str]
