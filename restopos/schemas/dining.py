from pydantic import BaseModel, ConfigDict

class TableIn(BaseModel):
    model_config = ConfigDict(extra="forbid")
    table_number: int

class BulkTablesIn(BaseModel):
    model_config = ConfigDict(extra="forbid")
    base_number: int
    quantity: int

class TableStatusIn(BaseModel):
    model_config = ConfigDict(extra="forbid")
    status: str
