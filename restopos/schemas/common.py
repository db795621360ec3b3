from pydantic import BaseModel

class Msg(BaseModel):
    message: str

class Token(BaseModel):
    access_token: str
    token_type: str = "bearer"
    tenant_id: str

class BootstrapIn(BaseModel):
    tenant_id: str = "demo-tenant"
    name: str = "Demo Restaurant"
    outlet_name: str = "Main Outlet"
