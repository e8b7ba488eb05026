"""
Record schemas for the site data document.

The document is stored as camelCase JSON; models accept either the camelCase
alias or the field name and dump by alias.
"""
from enum import Enum
from typing import Dict, List, Optional

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel


class CamelModel(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)

    def to_doc(self, **kwargs) -> dict:
        return self.model_dump(by_alias=True, mode="json", **kwargs)


class ClientType(str, Enum):
    person = "person"
    company = "company"


class OrderStatus(str, Enum):
    new = "new"
    in_progress = "in_progress"
    completed = "completed"


class Admin(CamelModel):
    username: str = Field(..., description="Admin login")
    password_hash: str = Field(..., description="Hex PBKDF2 hash")
    password_salt: str = Field(..., description="Hex salt")


class PriceEntry(CamelModel):
    price: int = Field(..., ge=0, description="Price in currency units")
    duration: str = Field(..., description="Free-text delivery time")


class ProjectFields(CamelModel):
    title: str
    description: str
    category: str
    tags: List[str] = Field(default_factory=list)
    gradient: str = ""
    url: Optional[str] = ""


class Project(ProjectFields):
    id: int


class ProjectUpdate(CamelModel):
    title: Optional[str] = None
    description: Optional[str] = None
    category: Optional[str] = None
    tags: Optional[List[str]] = None
    gradient: Optional[str] = None
    url: Optional[str] = None


class OrderCreate(CamelModel):
    name: str
    phone: str
    email: Optional[str] = ""
    client_type: ClientType = ClientType.person
    project_name: str
    description: str
    telegram: bool = False


class Order(OrderCreate):
    id: int
    status: OrderStatus = OrderStatus.new
    created_at: str


class OrderUpdate(CamelModel):
    name: Optional[str] = None
    phone: Optional[str] = None
    email: Optional[str] = None
    client_type: Optional[ClientType] = None
    project_name: Optional[str] = None
    description: Optional[str] = None
    telegram: Optional[bool] = None
    status: Optional[OrderStatus] = None


class Document(CamelModel):
    admin: Admin
    prices: Dict[str, PriceEntry]
    portfolio: List[Project] = Field(default_factory=list)
    orders: List[Order] = Field(default_factory=list)


class LoginModel(BaseModel):
    username: str
    password: str


class ChangePasswordModel(CamelModel):
    current_password: str
    new_password: str = Field(..., min_length=1)
