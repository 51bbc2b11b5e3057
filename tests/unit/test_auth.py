"""Tests for bearer token decoding and role checks."""

import pytest
from fastapi import HTTPException
from jose import jwt

from core.config import JWT_ALGORITHM, JWT_SECRET_KEY
from dependencies.auth import CurrentUser, get_current_user, require_role
from schemas.enum import RoleEnum


def token_for(**claims) -> str:
    return jwt.encode(claims, JWT_SECRET_KEY, algorithm=JWT_ALGORITHM)


class TestGetCurrentUser:
    @pytest.mark.asyncio
    async def test_decodes_subject_and_role(self):
        user = await get_current_user(token_for(sub="pro-1", role="professional", name="Dr Awa"))
        assert user == CurrentUser(id="pro-1", role=RoleEnum.PROFESSIONAL, name="Dr Awa")

    @pytest.mark.asyncio
    async def test_missing_subject(self):
        with pytest.raises(HTTPException) as exc_info:
            await get_current_user(token_for(role="patient"))
        assert exc_info.value.status_code == 401

    @pytest.mark.asyncio
    async def test_unknown_role(self):
        with pytest.raises(HTTPException) as exc_info:
            await get_current_user(token_for(sub="x", role="doctor"))
        assert exc_info.value.status_code == 401

    @pytest.mark.asyncio
    async def test_wrong_signature(self):
        token = jwt.encode({"sub": "x", "role": "patient"}, "another-secret", algorithm=JWT_ALGORITHM)
        with pytest.raises(HTTPException):
            await get_current_user(token)


class TestRequireRole:
    @pytest.mark.asyncio
    async def test_allowed(self):
        checker = require_role(RoleEnum.ADMIN)
        admin = CurrentUser(id="a", role=RoleEnum.ADMIN)
        assert await checker(admin) is admin

    @pytest.mark.asyncio
    async def test_forbidden(self):
        checker = require_role(RoleEnum.ADMIN, RoleEnum.PROFESSIONAL)
        with pytest.raises(HTTPException) as exc_info:
            await checker(CurrentUser(id="p", role=RoleEnum.PATIENT))
        assert exc_info.value.status_code == 403
