"""Signup and login form definitions."""

from __future__ import annotations

import re

from pydantic import BaseModel, ConfigDict, Field, field_validator, model_validator

EMAIL_PATTERN = re.compile(r"^[^\s@]+@[^\s@]+\.[^\s@]+$")
MIN_PASSWORD_LENGTH = 8


class LoginForm(BaseModel):
    model_config = ConfigDict(str_strip_whitespace=True, validate_default=True)

    email: str = Field(default="", max_length=255)
    password: str = Field(default="")

    @field_validator("email")
    @classmethod
    def validate_email(cls, value: str) -> str:
        if not value:
            raise ValueError("Email is required.")
        if not EMAIL_PATTERN.match(value):
            raise ValueError("Invalid email format.")
        return value.lower()

    @field_validator("password")
    @classmethod
    def require_password(cls, value: str) -> str:
        if not value:
            raise ValueError("Password is required.")
        return value


class SignupForm(LoginForm):
    """Signup adds password strength rules and a confirmation field."""

    confirm_password: str | None = Field(default=None)

    @field_validator("password")
    @classmethod
    def validate_strength(cls, value: str) -> str:
        if len(value) < MIN_PASSWORD_LENGTH:
            raise ValueError(f"Password must be at least {MIN_PASSWORD_LENGTH} characters.")
        if not re.search(r"[A-Z]", value):
            raise ValueError("Password must contain an uppercase letter.")
        if not re.search(r"[a-z]", value):
            raise ValueError("Password must contain a lowercase letter.")
        if not re.search(r"[0-9]", value):
            raise ValueError("Password must contain a digit.")
        return value

    @model_validator(mode="after")
    def passwords_match(self) -> "SignupForm":
        if self.confirm_password is not None and self.confirm_password != self.password:
            raise ValueError("Passwords do not match.")
        return self


__all__ = ["LoginForm", "SignupForm"]
