"""Schemas for privileged operations."""

from __future__ import annotations

from typing import Optional

from pydantic import BaseModel


class CreateOperatorRequest(BaseModel):
    name: str
    email: str
    password: str
    phone: Optional[str] = None
    status: Optional[str] = None


class CreatedOperatorModel(BaseModel):
    id: str
    email: str
    name: str
    message: str = "Operator created."


class UserModel(BaseModel):
    id: str
    email: Optional[str] = None


class SendEmailRequest(BaseModel):
    to: str
    subject: str
    html: str


class SendEmailResponse(BaseModel):
    success: bool = True
    id: Optional[str] = None
