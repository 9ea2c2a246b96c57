"""
Esquemas de entrada para usuarios
"""
from pydantic import BaseModel, ConfigDict


class UserRegister(BaseModel):
    """Cuerpo de POST /users"""
    model_config = ConfigDict(extra="forbid")

    username: str = ""
    email: str = ""
    password: str = ""


class ActivateRequest(BaseModel):
    """Cuerpo de PUT /users/activated"""
    model_config = ConfigDict(extra="forbid")

    token: str = ""
