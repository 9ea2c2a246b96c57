from pydantic import BaseModel, ConfigDict


class LoginRequest(BaseModel):
    """Credenciales para POST /tokens/authentication"""
    model_config = ConfigDict(extra="forbid")

    email: str = ""
    password: str = ""
