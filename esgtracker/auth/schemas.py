"""
schemas.py — Auth request/response contracts.

Request bodies are strict about presence (missing name/email/password is a 400
from the global RequestValidationError handler). Email and password format
are not checked.
"""
from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel


class SignupRequest(BaseModel):
    name: str = Field(..., min_length=1, max_length=255)
    email: str = Field(..., min_length=1, max_length=255)
    password: str = Field(..., min_length=1)


class LoginRequest(BaseModel):
    email: str = Field(..., min_length=1)
    password: str = Field(..., min_length=1)


class UserOut(BaseModel):
    id: str
    name: str
    email: str


class SignupResponse(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)

    message: str = "User created successfully."
    user_id: str
    name: str


class LoginResponse(BaseModel):
    message: str = "Login successful."
    token: str
    user: UserOut
